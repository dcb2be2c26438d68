import uvicorn

from blottr.core.app_factory import create_app

app = create_app()


def run() -> None:
    """Serve the API with uvicorn (``blottr-api`` console script)."""
    uvicorn.run("blottr.main:app", host="0.0.0.0", port=8000)
