import uvicorn
from .config import load_settings
from .main import create_app


def run():
    settings = load_settings()
    uvicorn.run(create_app(settings), host='0.0.0.0', port=settings.port, log_level=settings.log_level.lower())


if __name__ == '__main__':
    run()
