# run_dev.py
"""
Local development launcher for FastAPI.
Equivalent to: `uvicorn agent_router.app:app --reload --host 0.0.0.0 --port 3001`
"""

import uvicorn

from agent_router.settings import settings

if __name__ == "__main__":
    uvicorn.run(
        "agent_router.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level=settings.LOG_LEVEL.lower(),
    )
