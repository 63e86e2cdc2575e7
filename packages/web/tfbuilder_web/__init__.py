"""tfbuilder web: FastAPI backend for the Terraform designer."""

__version__ = "0.1.0"


def __getattr__(name: str):
    if name == "app":
        from tfbuilder_web.app import app

        return app
    raise AttributeError(f"module 'tfbuilder_web' has no attribute {name!r}")
