from mediawiki_gateway.models.gateway_models import Contribution, Protection

__all__ = ["Contribution", "Protection"]
