from .api_controller import ApiController

__all__ = ["ApiController"]
