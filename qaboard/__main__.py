import uvicorn

from qaboard.main import app, settings


if __name__ == "__main__":
    print(f"Band Vopros backend listening at http://localhost:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)
