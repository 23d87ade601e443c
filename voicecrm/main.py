# File: voicecrm/main.py
# ASGI entry point: `uvicorn voicecrm.main:app` or `voicecrm serve`.
from voicecrm.api.app import create_app

app = create_app()
