"""
Data models for the technical blueprint generated for one idea.
"""

from typing import List

from pydantic import BaseModel, Field, field_validator

from stackideator.services.diagram_service import strip_fences

LIST_FIELDS = (
    "backendModules",
    "frontendComponents",
    "apiEndpoints",
    "userStories",
    "securityStrategy",
    "deploymentStrategy",
    "externalIntegrations",
    "performanceOptimizations",
    "developmentPhases",
)


class ApiEndpoint(BaseModel):
    method: str = Field(..., description="HTTP method, e.g. GET or POST")
    path: str = Field(..., description="Request path, e.g. /api/users/{id}")
    description: str = Field(..., description="What the endpoint does")

    @field_validator("method")
    @classmethod
    def normalize_method(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("method must not be blank")
        return value.strip().upper()


class Estimation(BaseModel):
    weeksToMvp: int = Field(..., description="Weeks needed to reach an MVP")
    complexityScore: int = Field(..., description="Overall complexity from 0 to 100")
    recommendedTeamSize: int = Field(..., description="Number of developers recommended")

    @field_validator("weeksToMvp", "recommendedTeamSize")
    @classmethod
    def positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("complexityScore")
    @classmethod
    def bounded_score(cls, value: int) -> int:
        if not 0 <= value <= 100:
            raise ValueError("must be between 0 and 100")
        return value


class Blueprint(BaseModel):
    """
    Detailed architecture for one idea.

    Every list must be non-empty: a payload with some lists populated and
    others empty is rejected rather than accepted as a partial success.
    The diagram fields hold bare Mermaid source; an empty string means the
    diagram is absent.
    """

    databaseSchema: str = Field(..., description="A simplified SQL schema or ERD description")
    backendModules: List[str] = Field(..., description="Key backend modules/packages")
    frontendComponents: List[str] = Field(..., description="Key frontend components needed")
    apiEndpoints: List[ApiEndpoint] = Field(..., description="Main REST endpoints")
    userStories: List[str] = Field(..., description="5-7 key user stories or flows")
    securityStrategy: List[str] = Field(..., description="Authentication and authorization details (e.g. JWT, OAuth2, RBAC)")
    stateManagement: str = Field(..., description="Recommended frontend state management approach")
    deploymentStrategy: List[str] = Field(..., description="CI/CD, Docker, and Cloud deployment steps")
    externalIntegrations: List[str] = Field(..., description="Required 3rd party APIs (e.g. Stripe, SendGrid)")
    performanceOptimizations: List[str] = Field(..., description="Caching, lazy loading, etc.")
    projectStructure: str = Field(..., description="ASCII folder tree of the repository")
    developmentPhases: List[str] = Field(..., description="Implementation roadmap, one entry per phase")
    estimation: Estimation = Field(..., description="Effort estimate for the MVP")
    erDiagram: str = Field(..., description="Mermaid erDiagram source only, without ``` fences")
    sequenceDiagram: str = Field(..., description="Mermaid sequenceDiagram source only, without ``` fences")

    @field_validator(*LIST_FIELDS)
    @classmethod
    def list_not_empty(cls, value: list) -> list:
        if not value:
            raise ValueError("list must not be empty")
        return value

    @field_validator("databaseSchema", "stateManagement")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("erDiagram", "sequenceDiagram")
    @classmethod
    def unfence_diagram(cls, value: str) -> str:
        return strip_fences(value)

    @property
    def has_er_diagram(self) -> bool:
        return bool(self.erDiagram)

    @property
    def has_sequence_diagram(self) -> bool:
        return bool(self.sequenceDiagram)
