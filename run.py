"""
Start the inspection AI service
"""
import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

if __name__ == "__main__":
    import uvicorn
    from inspection_ai.config import get_settings
    from inspection_ai.core.logging import setup_logging

    settings = get_settings()

    setup_logging(log_level=settings.LOG_LEVEL, is_debug=settings.DEBUG)

    print(f"🚀 Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    print(f"📡 Server: http://{settings.HOST}:{settings.PORT}")
    print(f"📚 Docs: http://{settings.HOST}:{settings.PORT}/docs")
    print(f"🤖 AI configured: {settings.ai_configured}")
    print()

    uvicorn.run(
        "inspection_ai.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
