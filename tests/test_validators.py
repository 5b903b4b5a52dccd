"""Tests for environment schema validation (universe_bridge.utils.validators)."""

import pytest
from pydantic import ValidationError

from universe_bridge.utils import validators


def test_region_list_and_mapping_forms_agree():
    a = validators.RegionModel.model_validate([1, 2, 3, 4])
    b = validators.RegionModel(x=1, y=2, width=3, height=4)
    assert a == b


def test_region_negative_size_rejected():
    with pytest.raises(ValidationError):
        validators.RegionModel.model_validate([0, 0, -1, 4])


def test_pointer_forbidden_regions_default_empty():
    pointer = validators.PointerInfoModel(bounding_region=[0, 0, 10, 10])
    assert pointer.forbidden_regions == []


def test_observation_must_be_positive():
    with pytest.raises(ValidationError):
        validators.ObservationModel(width=0, height=10)


def test_empty_key_name_rejected():
    with pytest.raises(ValidationError, match="non-empty"):
        validators.EnvironmentModel(keys=["a", ""])


def test_schema_alias_and_field_name():
    by_alias = validators.EnvironmentsV1.model_validate(
        {"schema": "environments.v1", "environments": {"a": {}}}
    )
    by_name = validators.EnvironmentsV1(schema_version="environments.v1", environments={"a": {}})
    assert by_alias.schema_version == by_name.schema_version == "environments.v1"
    assert by_alias.environments["a"].keys == []
    assert by_alias.environments["a"].pointer is None


def test_load_shipped_config():
    from universe_bridge.configs.loader import DEFAULT_REGISTRY_PATH

    cfg = validators.load_environments_config(DEFAULT_REGISTRY_PATH)
    eggs = cfg.environments["flashgames.EasterEggsChallenge-v0"]
    assert eggs.pointer.bounding_region.width == 760
    assert len(eggs.pointer.forbidden_regions) == 2


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        validators.load_environments_config(tmp_path / "missing.yaml")


def test_load_invalid_wraps_value_error(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("schema: environments.v1\nenvironments:\n  a: {keys: 5}\n")
    with pytest.raises(ValueError, match="validation failed"):
        validators.load_environments_config(path)
