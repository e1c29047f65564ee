"""
Scenario configuration model — what ``scenario.yml`` may contain.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

DEFAULT_PROVISIONERS = ["docker", "swarm"]

DEFAULT_PLATFORM_IMAGES = [
    "tsuru/python",
    "tsuru/go",
    "tsuru/buildpack",
    "tsuru/cordova",
    "tsuru/elixir",
    "tsuru/java",
    "tsuru/nodejs",
    "tsuru/php",
    "tsuru/play",
    "tsuru/pypy",
    "tsuru/python3",
    "tsuru/ruby",
    "tsuru/static",
]


def _split_csv(value: object) -> object:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class ScenarioConfig(BaseModel):
    """Run-scoped settings for the platform scenario.

    Every field is optional; ``vars`` seeds arbitrary Environment
    variables (a list value becomes a multi-valued variable).
    """

    enabled: bool = False
    cli: str = "tsuru"
    clusters: list[str] = Field(default_factory=list)
    installer_name: str = ""
    examples_dir: str = ""
    provisioners: list[str] = Field(default_factory=lambda: list(DEFAULT_PROVISIONERS))
    platform_images: list[str] = Field(default_factory=lambda: list(DEFAULT_PLATFORM_IMAGES))
    max_workers: int | None = None
    vars: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("clusters", "provisioners", "platform_images", mode="before")
    @classmethod
    def _csv_lists(cls, value: object) -> object:
        return _split_csv(value)

    @field_validator("vars", mode="before")
    @classmethod
    def _multi_values(cls, value: object) -> object:
        if not isinstance(value, dict):
            return value
        normalized: dict[str, list[str]] = {}
        for name, raw in value.items():
            if raw is None:
                continue
            items = raw if isinstance(raw, list) else [raw]
            normalized[str(name)] = [str(item) for item in items]
        return normalized

    def environment_vars(self) -> dict[str, list[str]]:
        """Variables this config contributes to the Environment."""
        data: dict[str, list[str]] = {}
        if self.enabled:
            data["enabled"] = ["true"]
        if self.clusters:
            data["clusters"] = list(self.clusters)
        if self.installer_name:
            data["installername"] = [self.installer_name]
        if self.examples_dir:
            data["examplesdir"] = [self.examples_dir]
        data.update({name: list(values) for name, values in self.vars.items()})
        return data
