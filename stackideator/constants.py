"""Constants used throughout the application."""

# Generation
IDEA_BATCH_SIZE = 3
EXPECTED_CORE_FEATURES = 10

# Chat
SCHEMA_EXCERPT_CHARS = 200
WELCOME_MESSAGE_ID = "welcome"
CHAT_ERROR_TEXT = "Sorry, I encountered an error. Please try again."

# Persistence
STORAGE_KEY = "stackideator_projects"

# User-facing failure messages
IDEAS_FAILED_MESSAGE = "Failed to generate ideas. Please check your API key and try again."
BLUEPRINT_FAILED_MESSAGE = "Failed to generate architecture details."
TIMEOUT_MESSAGE = "The AI backend took too long to respond. Please try again."
SAVE_FAILED_MESSAGE = "Failed to save the project."
DELETE_FAILED_MESSAGE = "Failed to delete the project."
LOAD_FAILED_MESSAGE = "Saved project could not be found."

# Diagram rendering
DIAGRAM_RENDER_URL = "https://mermaid.ink/img/"
DIAGRAM_EDITOR_URL = "https://mermaid.live/edit#base64:"
ER_DIAGRAM_KEYWORD = "erDiagram"
SEQUENCE_DIAGRAM_KEYWORD = "sequenceDiagram"
