import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "message_limit": 100,
    "minimum_severity_to_display": "info",
    "failed_task_severity": "none",  # "none" never fails the run on severity
    "comment_author_names_to_delete": [],  # logins whose earlier comments are removed before posting
    "base_report_url": "",  # analysis server URL used to link rule descriptions
    "report_directory_pattern": "**",
    "report_file_name": "sonar-report.json",
}


def load_config(config_path: str = ".prca.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prca.yml in the current directory
      3. CLI argument overrides
    """
    config = {
        **DEFAULT_CONFIG,
        "comment_author_names_to_delete": list(DEFAULT_CONFIG["comment_author_names_to_delete"]),
    }

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Credentials only ever come from the environment.
    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config
