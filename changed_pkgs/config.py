from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    APP_NAME: str = "Changed Go Packages"

    # Where to look
    REPO_DIR: str = "."
    MOD_DIR: str = "."
    MANIFEST_NAME: str = "go.mod"

    # go list settings
    GO_BINARY: str = "go"
    GO_BUILD_TAGS: str = ""
    INCLUDE_TEST_FILES: bool = False  # treat *_test.go edits as package edits

    LOG_LEVEL: str = "WARNING"

    class Config:
        env_file = ".env"
        env_prefix = "CHANGED_PKGS_"

@lru_cache()
def get_settings():
    return Settings()
