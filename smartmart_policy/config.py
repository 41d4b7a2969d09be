"""
Configuration management for SMARTMART_POLICY.

Settings are read from environment variables (or a ``.env`` file) through
pydantic-settings. The evaluator can still be built with explicit arguments;
these settings are only needed to wire up the MongoDB role lookups.

Example:
    settings = PolicySettings()
    settings.validate_connection()
    lookup = MongoRoleLookup.from_settings(settings)
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import ADMIN_ROLE, ROLE_FIELD, USERS_COLLECTION
from .exceptions import ConfigurationError


class PolicySettings(BaseSettings):
    """
    Policy configuration with environment variable support.

    Attributes:
        mongo_uri: MongoDB connection URI (MONGO_URI)
        db_name: Database holding the user records (DB_NAME)
        users_collection: Collection queried for role lookups (USERS_COLLECTION)
        admin_role: Role value treated as administrator (ADMIN_ROLE)
        role_field: Field on the user record holding the role (ROLE_FIELD)
        server_selection_timeout_ms: Client server selection timeout
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    mongo_uri: str = Field("", description="MongoDB connection URI")
    db_name: str = Field("", description="Database name")
    users_collection: str = Field(USERS_COLLECTION, description="User records collection")
    admin_role: str = Field(ADMIN_ROLE, description="Role value with admin privileges")
    role_field: str = Field(ROLE_FIELD, description="Role field on user records")
    server_selection_timeout_ms: int = Field(
        5000, ge=1000, description="Server selection timeout in milliseconds"
    )

    def validate_connection(self) -> None:
        """
        Validate the settings needed to connect a role lookup.

        Raises:
            ConfigurationError: If required configuration is missing or invalid
        """
        if not self.mongo_uri:
            raise ConfigurationError(
                "mongo_uri is required (set MONGO_URI environment variable or pass directly)",
                config_key="MONGO_URI",
            )

        if not self.db_name:
            raise ConfigurationError(
                "db_name is required (set DB_NAME environment variable or pass directly)",
                config_key="DB_NAME",
            )

        if not self.users_collection:
            raise ConfigurationError(
                "users_collection must not be empty", config_key="USERS_COLLECTION"
            )

        if not self.admin_role:
            raise ConfigurationError("admin_role must not be empty", config_key="ADMIN_ROLE")
