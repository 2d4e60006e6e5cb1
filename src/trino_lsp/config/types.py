from typing import TypedDict


class ServiceConfig(TypedDict):
    url: str
    timeout: float
    include_auto_suggestions: bool


class DiffConfig(TypedDict):
    timeout: float
    line_mode_threshold: int


class DiagnosticsConfig(TypedDict):
    max_number_of_problems: int
    source: str


class ServerConfig(TypedDict):
    version: int
    service: ServiceConfig
    diff: DiffConfig
    diagnostics: DiagnosticsConfig
