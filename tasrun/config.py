"""Global configuration — loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class TasSettings(BaseSettings):
    runs_dir: Path = Path("__runs")
    log_level: str = "INFO"

    # Deterministic RNG seeds used when a program file does not set its own
    default_seed: int = 8675309

    # Recording / playback
    record_inputs: bool = False
    playback_inputs: bool = False
    restore_backup_recording: bool = False
    backup_filename: str = "latest.rec.bak"

    # Optimizer bounds survive restarts through this file
    optimizer_state_path: Path = Path("__runs/optimization.json")

    # Scripted override queue
    scripted_interval_ticks: int = 16
    scripted_initial_delay: int = 14

    restart_on_death: bool = True

    model_config = {"env_prefix": "TASRUN_"}


settings = TasSettings()
