"""Tests for document ids, the Document model and the document store."""

from datetime import date, datetime

import pytest

from catalog import Document, DocumentStore, ParseError, document_id_for, parse_document, validate_metadata

from tests.fixtures.documents import BASE_FIELDS, TODAY, document_text


def make_document(doc_id="react", body="# Body\n", **fields):
    raw, _ = parse_document(document_text(**fields))
    metadata = validate_metadata(raw, today=TODAY)
    return Document(id=doc_id, metadata=metadata, body=body, source_ref=f"{doc_id}.md")


class TestDocumentId:

    @pytest.mark.parametrize(
        "source_ref, expected",
        [
            ("react.md", "react"),
            ("examples/React App/agents.md", "examples/react-app/agents"),
            ("./examples\\Vue 3/AGENTS.md", "examples/vue-3/agents"),
            ("docs/guide.markdown", "docs/guide"),
            ("后端服务/示例.md", "后端服务/示例"),
            ("  spaced slug  ", "spaced-slug"),
            ("v1.2/notes.md", "v1.2/notes"),
        ],
    )
    def test_derivation(self, source_ref, expected):
        assert document_id_for(source_ref) == expected

    @pytest.mark.parametrize(
        "source_ref",
        ["a.md.md", "notes.MD.markdown", "a-.md", "x.md/.md", "Backend Service.md", "-..-/doc", "examples/React App/agents.md"],
    )
    def test_id_of_an_id_is_itself(self, source_ref):
        doc_id = document_id_for(source_ref)
        assert document_id_for(doc_id) == doc_id

    def test_repeated_suffixes_are_all_dropped(self):
        assert document_id_for("a.md.md") == "a"
        assert document_id_for("x.md/.md") == "x"

    def test_stable(self):
        assert document_id_for("a/B.md") == document_id_for("a/B.md")

    @pytest.mark.parametrize("source_ref", ["", "   ", ".md", "./", "!!!"])
    def test_no_id_derivable(self, source_ref):
        with pytest.raises(ParseError):
            document_id_for(source_ref)


class TestDocument:

    def test_to_text_round_trip(self):
        document = make_document(body="# Title\n\nBody.\n")
        raw, body = parse_document(document.to_text())
        assert validate_metadata(raw, today=TODAY) == document.metadata
        assert body == document.body

    def test_extras_of_every_type_survive_to_text(self):
        extras = dict(
            published=date(2024, 1, 1),
            reviewed_at=datetime(2024, 2, 3, 4, 5, 6),
            note=None,
            stars=5,
            score=4.5,
            draft=False,
            motto="yes",
            meta={"when": date(2024, 1, 1), "owner": None, "labels": ["a", 1, True]},
        )
        metadata = validate_metadata({**BASE_FIELDS, **extras}, today=TODAY)
        document = Document(id="react", metadata=metadata, body="# Body\n")

        raw, body = parse_document(document.to_text())
        metadata = validate_metadata(raw, today=TODAY)

        assert metadata == document.metadata
        assert metadata.extras["published"] == date(2024, 1, 1)
        assert metadata.extras["meta"]["when"] == date(2024, 1, 1)
        assert "note" in metadata.extras and metadata.extras["note"] is None
        assert body == document.body

    def test_to_dict_without_body(self):
        data = make_document().to_dict(include_body=False)
        assert "body" not in data
        assert data["metadata"]["lastUpdated"] == "2024-05-01"

    def test_copy_is_equal_but_not_shared(self):
        document = make_document(framework={"name": "react"})
        copied = document.copy()
        assert copied == document
        assert copied.metadata.model_extra is not document.metadata.model_extra


class TestDocumentStore:

    def test_put_new_returns_none(self):
        store = DocumentStore()
        assert store.put(make_document()) is None
        assert len(store) == 1
        assert "react" in store

    def test_put_replaces_and_returns_previous(self):
        store = DocumentStore()
        first = make_document(name="First")
        second = make_document(name="Second")
        store.put(first)
        previous = store.put(second)
        assert previous.metadata.name == "First"
        assert store.get("react").metadata.name == "Second"
        assert len(store) == 1

    def test_get_missing(self):
        assert DocumentStore().get("nope") is None

    def test_remove(self):
        store = DocumentStore()
        store.put(make_document())
        removed = store.remove("react")
        assert removed.id == "react"
        assert store.get("react") is None
        assert store.remove("react") is None

    def test_stored_copy_is_isolated_from_caller(self):
        store = DocumentStore()
        document = make_document(framework={"name": "react"})
        store.put(document)
        document.metadata.model_extra["framework"]["name"] = "vue"
        assert store.get("react").metadata.extras["framework"] == {"name": "react"}

    def test_list_tolerates_mutation(self):
        store = DocumentStore()
        for doc_id in ("a", "b", "c"):
            store.put(make_document(doc_id=doc_id))
        for document in store.list():
            store.remove(document.id)
        assert len(store) == 0

    def test_list_yields_all(self):
        store = DocumentStore()
        for doc_id in ("a", "b"):
            store.put(make_document(doc_id=doc_id))
        assert sorted(doc.id for doc in store.list()) == ["a", "b"]
