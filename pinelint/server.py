from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState
from fastapi.middleware.cors import CORSMiddleware
from .config import load_config
from .models import LintReport, LintRequest
from .router import route_request
from .services.dsl_lint import DSLLinter
from .utils.errors import ConfigError
import uvicorn
import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("pinelint.server")

app = FastAPI(title="pinelint")

# Editor plugins call in from arbitrary local origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def health_check():
    return {"status": "ok", "service": "pinelint", "version": "0.1.0"}

@app.post("/lint", response_model=LintReport)
async def lint(body: LintRequest) -> LintReport:
    try:
        config = load_config(**body.config)
    except ConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))
    result = DSLLinter(config).lint(body.source, path=body.path)
    return result.to_report()

@app.websocket("/ws/lint")
async def lint_ws(ws: WebSocket):
    await ws.accept()
    logger.info("Client connected")

    try:
        while True:
            msg = await ws.receive_json()
            response = await route_request(msg)
            await ws.send_json(response)

    except WebSocketDisconnect:
        logger.info("Client disconnected")
    except Exception as e:
        logger.error(f"WebSocket fatal error: {e}")
        if ws.client_state == WebSocketState.CONNECTED:
            await ws.send_json({
                "type": "error",
                "error": {"code": "FATAL", "message": str(e)}
            })

def main() -> None:
    port = int(os.getenv("PORT", 3000))
    uvicorn.run("pinelint.server:app", host=os.getenv("HOST", "127.0.0.1"), port=port)

if __name__ == "__main__":
    main()
