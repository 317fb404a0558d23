#!/usr/bin/env python3
"""Tests for Pydantic models."""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from vmdeck.models import RECORD_FIELDS, LockCheckResult, LockState, VMConfig, VMDraft


class TestVMDraft:
    def test_default_values(self):
        draft = VMDraft(name="vm", username="u", password="p")
        assert draft.disk_size == "20G"
        assert draft.memory == 2048
        assert draft.cpus == 2
        assert draft.ssh_port == 2222
        assert draft.gui_mode is False
        assert draft.os_type == "ubuntu"
        assert draft.hostname is None

    def test_accepts_text_numbers(self):
        draft = VMDraft(name="vm", username="u", password="p", memory="not-a-number")
        assert draft.memory == "not-a-number"

    def test_repr_hides_password(self):
        draft = VMDraft(name="vm", username="u", password="hunter2")
        assert "hunter2" not in repr(draft)


class TestVMConfig:
    def test_record_has_every_field_as_string(self, sample_config):
        record = sample_config.to_record()
        assert tuple(record) == RECORD_FIELDS
        assert all(isinstance(v, str) for v in record.values())
        assert record["gui_mode"] == "true"
        assert record["memory"] == "4096"

    def test_from_record_round_trip(self, sample_config):
        assert VMConfig.from_record(sample_config.to_record()) == sample_config

    def test_from_record_missing_field(self, sample_config):
        record = sample_config.to_record()
        del record["ssh_port"]
        with pytest.raises(ValueError, match="ssh_port"):
            VMConfig.from_record(record)

    @pytest.mark.parametrize("field,value", [
        ("name", "bad name"),
        ("disk_size", "20"),
        ("memory", 0),
        ("cpus", -2),
        ("ssh_port", 21),
        ("ssh_port", 65536),
        ("username", ""),
    ])
    def test_rejects_invalid_values(self, sample_config, field, value):
        data = sample_config.model_dump()
        data[field] = value
        with pytest.raises(PydanticValidationError):
            VMConfig(**data)

    def test_is_frozen(self, sample_config):
        with pytest.raises(PydanticValidationError):
            sample_config.memory = 1

    def test_redacted_masks_password(self, sample_config):
        record = sample_config.redacted()
        assert record["password"] == "***"
        assert "p@ss" not in repr(sample_config)

    def test_paths_are_paths(self, sample_config):
        assert isinstance(sample_config.img_file_path, Path)


class TestLockCheckResult:
    def test_is_free(self):
        assert LockCheckResult(state=LockState.FREE, vm_name="vm").is_free
        assert not LockCheckResult(state=LockState.HELD_BY_OTHER, vm_name="vm", holding_pid=1).is_free

    def test_defaults(self):
        result = LockCheckResult(state=LockState.FREE, vm_name="vm")
        assert result.holding_pid is None
        assert result.all_holders == ()
