"""Naming configuration for generated output."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


def _module_name(filename: str, option: str) -> str:
    path = Path(filename)
    if path.suffix != ".py" or path.parent != Path(".") or not path.stem.isidentifier():
        raise ValueError(f"{option} must be a module filename like 'client.py', got {filename!r}")
    return path.stem


@dataclass(frozen=True)
class NamingConfig:
    """Where generated files go and what they are called."""

    output_dir: Path = Path("generated")
    client_filename: str = "client.py"
    contracts_filename: str = "contracts.py"
    base_url_name: str = "BASE_URL"
    transport_filename: str = "transport.py"

    def __post_init__(self) -> None:
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        modules = {
            _module_name(self.client_filename, "client_filename"),
            _module_name(self.contracts_filename, "contracts_filename"),
            _module_name(self.transport_filename, "transport_filename"),
        }
        if len(modules) != 3:
            raise ValueError("client, contracts and transport filenames must differ")
        if not self.base_url_name.isidentifier():
            raise ValueError(f"base_url_name must be an identifier, got {self.base_url_name!r}")

    @property
    def client_module(self) -> str:
        return Path(self.client_filename).stem

    @property
    def contracts_module(self) -> str:
        return Path(self.contracts_filename).stem

    @property
    def transport_module(self) -> str:
        return Path(self.transport_filename).stem
