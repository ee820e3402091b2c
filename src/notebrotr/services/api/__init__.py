"""REST API for minting keys, publishing notes and listing stored notes.

See Also:
    [Api][notebrotr.services.api.service.Api]: The service class.
    [ApiConfig][notebrotr.services.api.configs.ApiConfig]: Service configuration.
"""

from .configs import ApiConfig
from .service import Api, PublishRequest


__all__ = ["Api", "ApiConfig", "PublishRequest"]
