"""Configuration for the bridge client."""

from .settings import BridgeSettings, GovernanceSettings, ModelSettings, get_settings

__all__ = ["BridgeSettings", "GovernanceSettings", "ModelSettings", "get_settings"]
