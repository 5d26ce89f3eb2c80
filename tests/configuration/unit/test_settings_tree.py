"""Settings tree entity tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from mail2workitem.configuration.errors import ConfigArgumentError, ConfigValidationError
from mail2workitem.configuration.settings_tree import (
    ConfigDocument,
    DefaultValueDefinition,
    EmailSettings,
    InstanceConfig,
    TfsServerConfig,
    WorkItemSettings,
)


def _instance(name: str, base_directory: Path | None = None) -> InstanceConfig:
    return InstanceConfig(
        name=name,
        tfs_server=TfsServerConfig(
            collection_uri="https://tfs.example.com/tfs/Default/",
            project="Example",
            work_item_template="Bug",
            cache_query_file="cache.wiq",
            base_directory=base_directory,
        ),
        work_items=WorkItemSettings(),
        email=EmailSettings(
            reply_template="reply.htm",
            ews_password_file="ews.txt",
            base_directory=base_directory,
        ),
    )


def test_duplicate_instance_names_are_rejected() -> None:
    with pytest.raises(ConfigValidationError, match="duplicated: Main"):
        ConfigDocument(instances=(_instance("Main"), _instance("Other"), _instance("Main")))


def test_instance_lookup_by_name() -> None:
    document = ConfigDocument(instances=(_instance("Main"), _instance("Other")))

    assert document.instance("Other").name == "Other"
    assert document.instance_names == ("Main", "Other")
    with pytest.raises(KeyError):
        document.instance("Missing")


def test_first_default_value_wins() -> None:
    settings = WorkItemSettings(
        default_field_values=(
            DefaultValueDefinition(field="Priority", value="2"),
            DefaultValueDefinition(field="Priority", value="1"),
        )
    )

    assert settings.default_value_for("Priority").value == "2"
    assert settings.default_value_for("Severity") is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, ()),
        ("", ()),
        ("Contoso Bugs", ("Contoso Bugs",)),
        ("Contoso Bugs; ;Contoso Triage;", ("Contoso Bugs", "Contoso Triage")),
    ],
)
def test_recipient_display_name_list(raw: str | None, expected: tuple[str, ...]) -> None:
    assert EmailSettings(recipient_display_names=raw).recipient_display_name_list == expected


def test_file_backed_fields_resolve_lazily(tmp_path: Path) -> None:
    (tmp_path / "cache.wiq").write_text("SELECT *", encoding="utf-8")
    (tmp_path / "reply.htm").write_text("<p>Thanks</p>\n", encoding="utf-8")
    (tmp_path / "ews.txt").write_text("s3cret\n", encoding="utf-8")
    instance = _instance("Main", base_directory=tmp_path)

    assert instance.tfs_server.cache_query == "SELECT *"
    assert instance.email.get_reply_template() == "<p>Thanks</p>\n"
    assert instance.email.reply_template_text == "<p>Thanks</p>\n"
    assert instance.email.ews_password == "s3cret\n"


def test_unset_password_file_fails_on_access() -> None:
    instance = _instance("Main")

    with pytest.raises(ConfigArgumentError, match="ServiceIdentityPasswordFile"):
        _ = instance.tfs_server.service_identity_password


def test_deferred_cache_does_not_affect_equality(tmp_path: Path) -> None:
    (tmp_path / "cache.wiq").write_text("SELECT *", encoding="utf-8")
    resolved = _instance("Main", base_directory=tmp_path)
    _ = resolved.tfs_server.cache_query

    assert resolved == _instance("Main")
