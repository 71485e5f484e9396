"""Unit tests for the CLI argument parser and commands."""

from __future__ import annotations

import asyncio

import pytest

from gensaga.cli.main import _params_from_args, build_arg_parser, list_models, sync_async


def test_generate_defaults() -> None:
    """Generate defaults to image kind and the local identity."""
    args = build_arg_parser().parse_args(["generate", "--prompt", "a fox"])

    assert (args.cmd, args.kind, args.identity) == ("generate", "image", "local")
    assert not args.offline
    assert args.model is None


def test_generate_params_only_include_given_flags() -> None:
    """Unset flags do not override stored settings."""
    args = build_arg_parser().parse_args(
        ["generate", "--prompt", "p", "--num-images", "2", "--attach", "a", "--attach", "b"]
    )

    params = _params_from_args(args)

    assert params.model_dump(exclude_unset=True) == {
        "num_images": 2,
        "attachment_urls": ("a", "b"),
    }


def test_command_required() -> None:
    """A subcommand is mandatory."""
    with pytest.raises(SystemExit):
        build_arg_parser().parse_args([])


def test_models_command(tmp_path, monkeypatch) -> None:
    """The models command prints the catalog."""
    monkeypatch.chdir(tmp_path)
    args = build_arg_parser().parse_args(["models", "--kind", "video"])

    assert list_models(args) == 0


def test_sync_command_with_empty_queue(tmp_path, monkeypatch) -> None:
    """Sync succeeds when nothing is queued."""
    monkeypatch.chdir(tmp_path)
    args = build_arg_parser().parse_args(["sync"])

    assert asyncio.run(sync_async(args)) == 0
