"""
Tests for dataset parsing and the DatasetSnapshot indexes.
"""

import pytest

from mmt_mock_engine.core.reference_resolver.dataset import DatasetSnapshot, parse_module, parse_version
from mmt_mock_engine.core.reference_resolver.exceptions import InvalidDatasetError, LoadError
from mmt_mock_engine.core.reference_resolver.models import (
    MockReference,
    Statistic,
    TheoryRecord,
    UnknownRecord,
    ViewRecord,
)


class TestDatasetParsing:
    """Test suite for DatasetSnapshot.from_dict."""

    def test_collections_are_parsed_in_order(self, snapshot):
        assert [g.id for g in snapshot.groups] == ["G1", "G2"]
        assert [a.id for a in snapshot.archives] == ["A1", "A2"]
        assert [d.id for d in snapshot.documents] == ["D1", "D2", "D3"]
        assert [o.id for o in snapshot.opaques] == ["O1", "O2"]
        assert [m.id for m in snapshot.modules] == ["T0", "T1", "V1"]

    def test_group_fields(self, snapshot):
        group = snapshot.find_group("G1")

        assert group.name == "Algebra"
        assert group.responsible == ["Emmy Noether"]
        assert group.statistics == [Statistic(key="archive_count", value=1)]

    def test_archive_parent_and_tags(self, snapshot):
        archive = snapshot.find_archive("A1")

        assert archive.parent == MockReference(id="G1")
        assert archive.tags == ["t1"]
        assert archive.modules == []

    def test_camel_case_content_format(self, snapshot):
        opaque = snapshot.find_opaque("O1")

        assert opaque.content_format == "html"
        assert opaque.content == "<p>Welcome</p>"

    def test_parent_kind_hint_is_kept(self):
        snapshot = DatasetSnapshot.from_dict({
            "documents": [{"id": "D", "name": "d", "parent": {"id": "X", "kind": "archive"}}],
        })

        assert snapshot.find_document("D").parent == MockReference(id="X", kind="archive")

    def test_glossary_definition_key(self, snapshot):
        entry = snapshot.glossary[0]

        assert entry.kwd == {"en": "monoid"}
        assert entry.definition == {"en": "A set with an associative operation."}

    def test_missing_collections_are_empty(self):
        snapshot = DatasetSnapshot.from_dict({"groups": [{"id": "G", "name": "g"}]})

        assert len(snapshot.groups) == 1
        assert snapshot.archives == ()
        assert snapshot.modules == ()
        assert snapshot.version.major == 0

    def test_non_mapping_payload_is_rejected(self):
        with pytest.raises(InvalidDatasetError):
            DatasetSnapshot.from_dict(["not", "a", "dataset"])

    def test_non_list_collection_is_rejected(self):
        with pytest.raises(InvalidDatasetError) as exc_info:
            DatasetSnapshot.from_dict({"archives": {"id": "A1"}})

        assert "archives" in str(exc_info.value)
        assert isinstance(exc_info.value, LoadError)

    def test_records_without_id_are_skipped(self, caplog):
        snapshot = DatasetSnapshot.from_dict({"groups": [{"name": "anonymous"}, {"id": "G", "name": "g"}]})

        assert [g.id for g in snapshot.groups] == ["G"]
        assert "skipping record without id in dataset.groups" in caplog.text

    def test_first_record_wins_on_duplicate_ids(self):
        snapshot = DatasetSnapshot.from_dict({
            "groups": [{"id": "G", "name": "first"}, {"id": "G", "name": "second"}],
        })

        assert snapshot.find_group("G").name == "first"

    def test_duplicate_ids_appear_once_in_collections(self, payload, caplog):
        payload["archives"].append({"id": "A1", "name": "copy", "parent": {"id": "G1"}, "tags": ["t1"]})
        snapshot = DatasetSnapshot.from_dict(payload)

        assert [a.id for a in snapshot.archives] == ["A1", "A2"]
        assert [a.name for a in snapshot.archives_of_group("G1")] == ["algebra"]
        assert [a.name for a in snapshot.archives_with_tag("t1")] == ["algebra"]
        assert "duplicate id A1" in caplog.text


class TestModuleParsing:
    """Test suite for the module kind discriminator."""

    def test_theory(self):
        module = parse_module({"kind": "theory", "id": "T", "name": "t", "meta": {"id": "M"}})

        assert isinstance(module, TheoryRecord)
        assert module.meta == MockReference(id="M")

    def test_view(self):
        module = parse_module({"kind": "view", "id": "V", "name": "v", "domain": "A", "codomain": {"id": "B"}})

        assert isinstance(module, ViewRecord)
        assert module.domain.id == "A"
        assert module.codomain.id == "B"

    def test_module_parent_is_not_kept(self):
        module = parse_module({"kind": "theory", "id": "T", "name": "t", "parent": {"id": "D"}})

        assert not hasattr(module, "parent")

    def test_unknown_kind_is_kept_raw(self):
        raw = {"kind": "notebook", "id": "N", "name": "n", "cells": []}
        module = parse_module(raw)

        assert isinstance(module, UnknownRecord)
        assert module.kind == "notebook"
        assert module.raw == raw


class TestSnapshotLookups:
    """Test suite for id lookups and reverse scans."""

    def test_find_theory_and_view_check_kind(self, snapshot):
        assert snapshot.find_theory("T1") is not None
        assert snapshot.find_view("T1") is None
        assert snapshot.find_view("V1") is not None
        assert snapshot.find_theory("V1") is None

    def test_missing_ids_return_none(self, snapshot):
        assert snapshot.find_group("nope") is None
        assert snapshot.find_archive("nope") is None
        assert snapshot.find_document("nope") is None
        assert snapshot.find_opaque("nope") is None
        assert snapshot.find_module("nope") is None

    def test_archives_of_group(self, snapshot):
        assert [a.id for a in snapshot.archives_of_group("G1")] == ["A1"]
        assert [a.id for a in snapshot.archives_of_group("G2")] == ["A2"]

    def test_archives_with_tag_is_exact(self, snapshot):
        assert [a.id for a in snapshot.archives_with_tag("t1")] == ["A1"]
        assert snapshot.archives_with_tag("t") == []

    def test_children_scans(self, snapshot):
        assert [d.id for d in snapshot.documents_of("D1")] == ["D2"]
        assert [o.id for o in snapshot.opaques_of("D1")] == ["O1"]

    def test_indexes_are_read_only(self, snapshot):
        with pytest.raises(TypeError):
            snapshot._groups["G9"] = None


class TestVersionParsing:

    def test_version_with_extra_fields(self):
        version = parse_version({"major": 2, "minor": 5, "build": 17, "mmt": "24.0.0"})

        assert version.major == 2
        assert version.minor == 5
        assert version.build == "17"
        assert version.extra == {"mmt": "24.0.0"}

    def test_missing_version(self):
        assert parse_version(None).major == 0
