from unittest.mock import AsyncMock, patch

import pytest

from squishy_mailer import MailerConfig, MailerService
from squishy_mailer.db import schemas
from squishy_mailer.errors import CipherError, ErrorCode, StoreError
from squishy_mailer.services.template_renderer import TemplateRenderError
from squishy_mailer.utils.digest import content_digest


@pytest.fixture
def service(db_path, hex_key):
    svc = MailerService(MailerConfig(db_filepath=str(db_path), encryption_key=hex_key))
    yield svc
    svc.close()


@pytest.fixture
def populated(service):
    service.create_project("p1", "Project One", "desc")
    service.create_group("g1", "p1", "Group One")
    service.create_smtp_transport(
        schemas.SMTPTransportCreate(
            transport_id="tr1",
            project_id="p1",
            name="primary",
            host="smtp.example.com",
            port=587,
            username="mailer",
            password="s3cr3t",
            email_from="noreply@example.com",
            email_from_name="Example",
            email_reply_to=["support@example.com"],
        )
    )
    service.set_template("p1", "g1", "welcome", "Hi {{ name }}", "<p>Hi {{ name }}</p>")
    return service


def test_invalid_configuration_lists_every_problem(db_path):
    with pytest.raises(ValueError) as exc:
        MailerService(MailerConfig(db_filepath=str(db_path), encryption_key="nothex"))
    assert "MAILER_ENCRYPTION_KEY" in str(exc.value)
    assert not db_path.exists()


def test_creates_schema_for_new_file_and_reopens(db_path, hex_key):
    cfg = MailerConfig(db_filepath=str(db_path), encryption_key=hex_key)
    with MailerService(cfg) as svc:
        svc.create_project("p1", "Project One")
    assert db_path.exists()
    with MailerService(cfg) as svc:
        assert svc.get_project("p1").name == "Project One"


def test_password_is_stored_encrypted(populated):
    transport = populated.get_smtp_transport("tr1", "p1")
    assert "s3cr3t" not in transport.encrypted_password
    assert populated.cipher.decrypt_from_text(transport.encrypted_password) == "s3cr3t"
    assert transport.email_reply_to == ["support@example.com"]


def test_set_template_computes_digests(populated):
    template = populated.get_template("p1", "welcome")
    assert template.text_digest == content_digest("Hi {{ name }}")
    assert template.html_digest == content_digest("<p>Hi {{ name }}</p>")
    again = populated.set_template("p1", "g1", "welcome", "Hi {{ name }}", "<p>Hi {{ name }}</p>")
    assert again.modified_at == template.modified_at


def test_set_template_rejects_broken_source(populated):
    with pytest.raises(TemplateRenderError):
        populated.set_template("p1", "g1", "broken", "{% if %}", "<p></p>")
    with pytest.raises(StoreError) as exc:
        populated.get_template("p1", "broken")
    assert exc.value.code is ErrorCode.TEMPLATE_NOT_FOUND


def test_set_template_from_files(populated, tmp_path):
    (tmp_path / "layout.txt").write_text("Header\n", encoding="utf-8")
    (tmp_path / "body.txt").write_text("Hi {{ name }}\n", encoding="utf-8")
    (tmp_path / "body.html").write_text("<p>Hi {{ name }}</p>\n", encoding="utf-8")
    template = populated.set_template_from_files(
        "p1", "g1", "files",
        [tmp_path / "layout.txt", tmp_path / "body.txt"],
        [tmp_path / "body.html"],
    )
    assert template.text_body == "Header\nHi {{ name }}\n"
    assert template.html_digest == content_digest("<p>Hi {{ name }}</p>\n")


@pytest.mark.asyncio
async def test_send_email_renders_and_delivers(populated):
    delivered = {'success': True, 'message_id': '<id@example.com>', 'error': None}
    with patch("squishy_mailer.services.mailer_service.SMTPSender") as sender_cls:
        sender_cls.return_value.send_email = AsyncMock(return_value=delivered)
        out = await populated.send_email(
            "p1", "tr1", "welcome", ["bob@example.com"], "Welcome", {"name": "<Bob>"}
        )
    assert out is delivered
    settings = sender_cls.call_args.args[0]
    assert settings.password == "s3cr3t"
    assert settings.host == "smtp.example.com"
    args, kwargs = sender_cls.return_value.send_email.call_args
    assert args == (["bob@example.com"], "Welcome", "<p>Hi &lt;Bob&gt;</p>", "Hi <Bob>")
    assert kwargs == {"cc": None, "bcc": None, "attachments": None}


@pytest.mark.asyncio
async def test_send_email_attaches_files(populated, tmp_path):
    report = tmp_path / "report.csv"
    report.write_bytes(b"a,b\n1,2\n")
    delivered = {'success': True, 'message_id': '<id@example.com>', 'error': None}
    with patch("squishy_mailer.services.mailer_service.SMTPSender") as sender_cls:
        sender_cls.return_value.send_email = AsyncMock(return_value=delivered)
        await populated.send_email(
            "p1", "tr1", "welcome", ["bob@example.com"], "Report", {"name": "Bob"}, attachments=[report]
        )
    _, kwargs = sender_cls.return_value.send_email.call_args
    assert kwargs["attachments"] == [{"filename": "report.csv", "content": b"a,b\n1,2\n"}]


def test_send_email_sync_missing_transport(populated):
    with pytest.raises(StoreError) as exc:
        populated.send_email_sync("p1", "nope", "welcome", ["bob@example.com"], "Welcome", {"name": "Bob"})
    assert exc.value.code is ErrorCode.TRANSPORT_NOT_FOUND


def test_send_email_with_wrong_key_fails_closed(populated, db_path):
    other = MailerService(MailerConfig(db_filepath=str(db_path), encryption_key="ff" * 16))
    try:
        with pytest.raises(CipherError) as exc:
            other.send_email_sync("p1", "tr1", "welcome", ["bob@example.com"], "Welcome", {"name": "Bob"})
        assert exc.value.code is ErrorCode.AUTHENTICATION_FAILURE
    finally:
        other.close()
