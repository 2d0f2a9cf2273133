"""Explicit configuration structs for intake runs and capture sessions.

Everything an intake run needs is passed in one of these models. Nothing is
read from environment variables or probed from ambient names.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from forensic_intake.kernel.errors import IntakeConfigError
from forensic_intake.kernel.external_filter import assert_no_banned_vocabulary
from forensic_intake.kernel.run_unit import AssertionGroup


SELECTOR_OBJECT_KEYS = ("id", "selector", "css", "query")


class CaptureScope(BaseModel):
    """Selector allow-list for evidence capture.

    An empty allow-list means nothing is in scope. Unbounded capture needs
    an explicit ``allow_all_selectors``.
    """
    allowed_selectors: List[str] = Field(default_factory=list)
    allow_all_selectors: bool = False
    strict_mode: bool = False  # raise on out-of-scope selectors instead of journaling only

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("allowed_selectors", mode="before")
    @classmethod
    def flatten_selector_objects(cls, v: Any) -> Any:
        """Accept plain strings or objects carrying id/selector/css/query."""
        if not isinstance(v, list):
            return v
        flat: List[str] = []
        for item in v:
            if isinstance(item, str):
                flat.append(item)
            elif isinstance(item, dict):
                flat.extend(item[k] for k in SELECTOR_OBJECT_KEYS if isinstance(item.get(k), str))
            else:
                raise ValueError(f"selector entries must be strings or objects, got {type(item).__name__}")
        return flat

    def is_allowed(self, selector: Any) -> bool:
        if not isinstance(selector, str) or not selector.strip():
            return False
        if self.allow_all_selectors:
            return True
        return selector in self.allowed_selectors


class RunUnitRecord(BaseModel):
    """Pre-normalized run unit input (``{anchor, condition}``)."""
    anchor: Optional[str] = None
    condition: str

    model_config = ConfigDict(extra="forbid")


class IntakeConfig(BaseModel):
    target_url: str
    target_domain: Optional[str] = None
    complaint_groups: Optional[List[AssertionGroup]] = None
    run_units: Optional[List[RunUnitRecord]] = None
    complaint_materials: str = ""  # free text used only for anchor detection
    output_dir: Optional[str] = None
    capture_scope: CaptureScope = Field(default_factory=CaptureScope)

    model_config = ConfigDict(extra="forbid")

    def require_inputs(self) -> None:
        """Check the config is complete before anything runs or is written.

        Raises:
            IntakeConfigError: no output directory, or not exactly one input form
            BannedVocabulary: ``target_domain`` is copied into the client-facing
                record and must not carry prohibited words
        """
        if not self.output_dir:
            raise IntakeConfigError("output_dir is required.")
        if self.run_units is None and self.complaint_groups is None:
            raise IntakeConfigError("either run_units or complaint_groups must be provided.")
        if self.run_units is not None and self.complaint_groups is not None:
            raise IntakeConfigError("provide run_units or complaint_groups, not both.")
        if self.target_domain:
            assert_no_banned_vocabulary(self.target_domain)


def intake_config_from_dict(data: Dict[str, Any]) -> IntakeConfig:
    try:
        return IntakeConfig.model_validate(data)
    except ValidationError as e:
        raise IntakeConfigError(f"invalid intake config: {e}") from e


def load_intake_config(path: Union[str, os.PathLike, Path]) -> IntakeConfig:
    """Load an intake config from a JSON file.

    Raises:
        FileNotFoundError: if the file does not exist
        IntakeConfigError: if the file is not valid JSON or fails validation
    """
    config_path = Path(path)
    with open(config_path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise IntakeConfigError(f"{config_path.name} is not valid JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise IntakeConfigError(f"{config_path.name} must contain a JSON object.")
    return intake_config_from_dict(data)
