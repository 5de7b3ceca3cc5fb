"""Tests for executable path resolution."""

import os
import sys

import pytest

from procbg.background import resolver
from procbg.background.resolver import resolve_path

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX execute permission bits")


def _make_program(path, mode=0o755):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(mode)
    return path


def test_absolute_executable_is_returned_as_given():
    assert resolve_path(sys.executable) == sys.executable


def test_absolute_missing_program(tmp_path, caplog):
    assert resolve_path(str(tmp_path / "nothing-here")) is None
    assert "nothing-here" in caplog.text


def test_empty_name_is_not_resolved():
    assert resolve_path("") is None


def test_directory_is_not_an_executable(tmp_path):
    assert resolve_path(str(tmp_path)) is None


@posix_only
def test_file_without_execute_permission(tmp_path):
    program = _make_program(tmp_path / "plain", mode=0o644)
    assert resolve_path(str(program)) is None


@posix_only
def test_relative_path_uses_current_directory(tmp_path, monkeypatch):
    _make_program(tmp_path / "bin" / "tool")
    monkeypatch.chdir(tmp_path)

    assert resolve_path(os.path.join("bin", "tool")) == os.path.join(os.getcwd(), "bin", "tool")


@posix_only
def test_bare_name_is_searched_on_path(tmp_path, monkeypatch):
    _make_program(tmp_path / "second" / "tool")
    _make_program(tmp_path / "third" / "tool")
    search = [str(tmp_path / "first"), "", str(tmp_path / "second"), str(tmp_path / "third")]
    monkeypatch.setenv("PATH", os.pathsep.join(search))

    assert resolve_path("tool") == str(tmp_path / "second" / "tool")


@posix_only
def test_relative_path_entries_use_current_directory(tmp_path, monkeypatch):
    _make_program(tmp_path / "local-bin" / "tool")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PATH", "local-bin")

    assert resolve_path("tool") == os.path.join(os.getcwd(), "local-bin", "tool")


def test_bare_name_not_on_path(tmp_path, monkeypatch):
    monkeypatch.setenv("PATH", str(tmp_path))
    assert resolve_path("tool") is None


@posix_only
def test_windows_tries_exe_suffix(tmp_path, monkeypatch):
    _make_program(tmp_path / "tool.exe")
    monkeypatch.setattr(resolver, "IS_WINDOWS", True)

    assert resolve_path(str(tmp_path / "tool")) == str(tmp_path / "tool.exe")


@posix_only
def test_exe_suffix_is_not_tried_elsewhere(tmp_path, monkeypatch):
    _make_program(tmp_path / "tool.exe")
    monkeypatch.setattr(resolver, "IS_WINDOWS", False)

    assert resolve_path(str(tmp_path / "tool")) is None
