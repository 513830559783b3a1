PROJECT_NAME = "Copilot-AI"
API_PREFIX = "/copilot"
AUTH_COOKIE_NAME = "copilot_auth"
