import os
from dataclasses import dataclass

@dataclass(frozen=True)
class Settings:
    project_id: str = ""
    api_key: str = ""
    storage_bucket: str = ""
    database: str = "(default)"
    # host:port of a local Firestore emulator, empty for production
    emulator_host: str = ""
    data_path: str = "collective_data.json"

    @property
    def local_mode(self) -> bool:
        return not self.project_id

def load_settings() -> Settings:
    def env(name: str, default: str = "") -> str:
        return os.getenv(name, default).strip()

    return Settings(
        project_id=env("FIREBASE_PROJECT_ID"),
        api_key=env("FIREBASE_API_KEY"),
        storage_bucket=env("FIREBASE_STORAGE_BUCKET"),
        database=env("FIRESTORE_DATABASE") or "(default)",
        emulator_host=env("FIRESTORE_EMULATOR_HOST"),
        data_path=env("COLLECTIVE_DATA_PATH") or "collective_data.json",
    )
