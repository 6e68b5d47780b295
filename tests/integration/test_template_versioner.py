from datetime import datetime, timedelta, timezone

import pytest

from squishy_mailer.db import schemas
from squishy_mailer.errors import ErrorCode, StoreError
from squishy_mailer.services.template_versioner import TemplateVersioner
from squishy_mailer.utils.digest import content_digest


class FrozenClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def versioner(store, clock):
    return TemplateVersioner(store, clock=clock)


def _set(versioner, text="Hi {{ name }}", html="<p>Hi {{ name }}</p>", group_id="g1", template_id="t1"):
    return versioner.set_template(
        "p1", group_id, template_id, text, content_digest(text), html, content_digest(html)
    )


def test_creates_when_absent(versioner, group, clock):
    created = _set(versioner)
    assert created.created_at == created.modified_at == clock.now
    assert created.text_body == "Hi {{ name }}"


def test_identical_content_is_a_noop(versioner, store, group, clock):
    first = _set(versioner)
    clock.advance(minutes=5)
    second = _set(versioner)
    assert second == first
    assert store.get_template("p1", "t1").modified_at == first.modified_at


def test_changed_text_updates_modified_at(versioner, store, group, clock):
    first = _set(versioner)
    clock.advance(seconds=1)
    second = _set(versioner, text="Hello {{ name }}")
    assert second.created_at == first.created_at
    assert second.modified_at == clock.now
    assert second.text_digest == content_digest("Hello {{ name }}")
    assert second.html_digest == first.html_digest
    assert store.get_template("p1", "t1") == second


def test_changed_html_only(versioner, group, clock):
    first = _set(versioner)
    clock.advance(seconds=1)
    second = _set(versioner, html="<p>Hello</p>")
    assert second.modified_at > first.modified_at
    assert second.text_digest == first.text_digest


def test_modified_at_strictly_increases_when_clock_stalls(versioner, group, clock):
    first = _set(versioner)
    second = _set(versioner, text="v2")
    third = _set(versioner, text="v3")
    assert first.modified_at < second.modified_at < third.modified_at
    assert second.modified_at - first.modified_at == timedelta(microseconds=1)


def test_update_keeps_stored_group(versioner, store, group):
    store.insert_group(schemas.GroupCreate(group_id="g2", project_id="p1", name="Group Two"))
    _set(versioner)
    unchanged = _set(versioner, group_id="g2")
    assert unchanged.group_id == "g1"
    updated = _set(versioner, group_id="g2", text="changed")
    assert updated.group_id == "g1"


def test_missing_project(versioner, store):
    with pytest.raises(StoreError) as exc:
        _set(versioner)
    assert exc.value.code is ErrorCode.PROJECT_NOT_FOUND


def test_missing_group_writes_nothing(versioner, store, project):
    with pytest.raises(StoreError) as exc:
        _set(versioner, group_id="nope")
    assert exc.value.code is ErrorCode.GROUP_NOT_FOUND
    with pytest.raises(StoreError) as exc:
        store.get_template("p1", "t1")
    assert exc.value.code is ErrorCode.TEMPLATE_NOT_FOUND


def test_end_to_end_scenario(store, clock):
    versioner = TemplateVersioner(store, clock=clock)
    store.insert_project("p1", "Project One")
    store.insert_group(schemas.GroupCreate(group_id="g1", project_id="p1", name="Group One"))

    created = _set(versioner, text="A", html="<a>")
    assert created.text_digest == content_digest("A")
    assert created.created_at == created.modified_at

    clock.advance(seconds=1)
    same = _set(versioner, text="A", html="<a>")
    assert same.modified_at == created.modified_at

    clock.advance(seconds=1)
    changed = _set(versioner, text="B", html="<a>")
    assert changed.text_digest == content_digest("B") != created.text_digest
    assert changed.modified_at > created.modified_at
    assert changed.created_at == created.created_at
    assert changed.html_body == "<a>"
    assert changed.html_digest == created.html_digest

    stored = store.get_template("p1", "t1")
    assert (stored.text_body, stored.html_body) == ("B", "<a>")
    assert stored.modified_at == changed.modified_at
