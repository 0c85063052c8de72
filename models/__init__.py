from models.agent import AgentProfile, CustomQuestion
from models.application import TenantApplication

__all__ = [
    "AgentProfile",
    "CustomQuestion",
    "TenantApplication",
]
