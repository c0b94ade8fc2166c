"""Tests for MessageDecoder."""

from datetime import datetime, timezone

import pytest

from mboxsort.errors import DecodeError, MalformedHeaderError, TruncatedPayloadError
from mboxsort.models.diagnostic import ErrorKind
from mboxsort.models.raw_frame import RawFrame
from mboxsort.services.email_parser.frame_splitter import FrameSplitter
from mboxsort.services.email_parser.message_decoder import (
    MessageDecoder,
    build_message,
    parse_date,
    unescape_from_lines,
)


class TestParseDate:
    """Test Date header parsing."""

    def test_parse_with_zone(self):
        """Test parsing a date with a numeric zone."""
        parsed = parse_date("Tue, 05 Mar 2024 09:30:00 +0200")

        assert parsed == datetime(2024, 3, 5, 7, 30, tzinfo=timezone.utc)

    def test_naive_date_taken_as_utc(self):
        """Test that a date without zone is taken as UTC."""
        parsed = parse_date("Tue, 05 Mar 2024 09:30:00 -0000")

        assert parsed.tzinfo is not None
        assert parsed.utcoffset().total_seconds() == 0

    def test_unparsable_date(self):
        """Test that an unparsable value parses to None."""
        assert parse_date("not a date") is None

    def test_missing_date(self):
        """Test that a missing value parses to None."""
        assert parse_date(None) is None
        assert parse_date("") is None


class TestUnescapeFromLines:
    """Test mboxrd un-escaping."""

    def test_one_level_removed(self):
        """Test that exactly one '>' is removed."""
        assert unescape_from_lines(b"a\n>From x\n>>From y\n") == b"a\nFrom x\n>From y\n"

    def test_quoted_text_untouched(self):
        """Test that quoted text without From is untouched."""
        assert unescape_from_lines(b"> quoted From here\n") == b"> quoted From here\n"


class TestMessageDecoder:
    """Test decoding frames into messages."""

    def test_decode_basic_fields(self, make_message, decode):
        """Test decoding of the common header fields and body."""
        message = decode(
            make_message(
                subject="Status update",
                sender="Alice Smith <Alice@Example.COM>",
                message_id="abc123@example.com",
            ),
            offset=42,
        )

        assert message.source_offset == 42
        assert message.id == 42
        assert message.subject == "Status update"
        assert message.sender == "Alice Smith <Alice@Example.COM>"
        assert message.sender_address == "alice@example.com"
        assert message.sender_domain == "example.com"
        assert message.to == "Bob <bob@example.org>"
        assert message.recipients == ["bob@example.org"]
        assert message.date == datetime(2024, 3, 4, 10, 0, tzinfo=timezone.utc)
        assert message.message_id == "<abc123@example.com>"
        assert message.envelope == "sender@example.com Thu Jan  1 00:00:00 1970"
        assert message.text_body() == "Hello world\n"

    def test_encoded_subject_is_decoded(self, make_message, decode):
        """Test RFC 2047 decoding of the subject."""
        message = decode(make_message(subject="=?utf-8?B?5Lit5paH?="))

        assert message.subject == "中文"
        assert message.get("Subject") == "=?utf-8?B?5Lit5paH?="

    def test_folded_subject(self, decode):
        """Test that folded header lines are unfolded."""
        raw = (
            b"From a@b.c Thu Jan  1 00:00:00 1970\n"
            b"Subject: A folded\n"
            b" subject\n"
            b"Date: Mon, 04 Mar 2024 10:00:00 +0000\n"
            b"\n"
            b"body\n"
        )

        assert decode(raw).subject == "A folded subject"

    def test_duplicate_headers_preserved(self, make_message, decode):
        """Test that repeated header fields are all kept."""
        message = decode(make_message(extra_headers=["Received: from a", "Received: from b"]))

        assert message.get_all("received") == ["from a", "from b"]

    def test_missing_date_is_flagged_not_fatal(self, make_message, decode):
        """Test that a missing Date is flagged without failing the message."""
        message = decode(make_message(date=None))

        assert message.date is None
        assert not message.is_dated
        assert "Missing Date header" in message.warnings

    def test_unparsable_date_is_flagged(self, make_message, decode):
        """Test that an unparsable Date is flagged."""
        message = decode(make_message(date="sometime last week"))

        assert message.date is None
        assert any("Unparsable Date header" in warning for warning in message.warnings)

    def test_sender_falls_back_to_return_path(self, make_message, decode):
        """Test sender fallback to Return-Path."""
        message = decode(make_message(sender=None, extra_headers=["Return-Path: <Bounce@Lists.Example.org>"]))

        assert message.sender == ""
        assert message.sender_address == "bounce@lists.example.org"

    def test_sender_falls_back_to_envelope(self, make_message, decode):
        """Test sender fallback to the envelope line."""
        message = decode(make_message(sender=None))

        assert message.sender_address == "sender@example.com"

    def test_reply_headers(self, make_message, decode):
        """Test In-Reply-To and References parsing."""
        message = decode(
            make_message(
                in_reply_to="<parent@example.com>",
                references="<root@example.com>\n <parent@example.com>",
            )
        )

        assert message.in_reply_to == "<parent@example.com>"
        assert message.references == ("<root@example.com>", "<parent@example.com>")

    def test_escaped_from_line_unescaped(self, make_message, decode):
        """Test that mboxrd escaped From lines are unescaped."""
        message = decode(make_message(body=">From moo\n"))

        assert message.text_body() == "From moo\n"

    def test_unescape_can_be_disabled(self, make_message):
        """Test that unescaping can be turned off."""
        decoder = MessageDecoder(unescape_from=False)

        message = decoder.decode(RawFrame(offset=0, data=make_message(body=">From moo\n")))

        assert message.text_body() == ">From moo\n"

    def test_multipart_body_parts(self, make_message, decode):
        """Test that a multipart message exposes its sub-parts."""
        body = "--b\nContent-Type: text/plain; charset=us-ascii\n\nplain\n--b\nContent-Type: text/html\n\n<b>x</b>\n--b--\n"
        message = decode(make_message(body=body, extra_headers=['Content-Type: multipart/alternative; boundary="b"']))

        assert message.content_type == "multipart/alternative"
        assert [part.content_type for part in message.body_parts] == ["text/plain", "text/html"]
        assert message.text_body() == "plain"
        assert any("Part 1.2" in warning for warning in message.warnings)

    def test_attachments(self, make_message, decode):
        """Test that attachment parts are decoded with their filename."""
        body = (
            "--b\n\nsee attached\n"
            "--b\nContent-Type: image/png\nContent-Disposition: attachment; filename=pic.png\n"
            "Content-Transfer-Encoding: base64\n\niVBORw==\n--b--\n"
        )
        message = decode(make_message(body=body, extra_headers=["Content-Type: multipart/mixed; boundary=b"]))

        attachments = message.attachments()
        assert len(attachments) == 1
        assert attachments[0].filename == "pic.png"
        assert attachments[0].payload == b"\x89PNG"

    def test_separator_line_not_part_of_body(self, make_message, build_archive):
        """Test that the blank line before the next envelope is dropped from the payload."""
        archive = build_archive(make_message(subject="One"), make_message(subject="Two"))
        decoder = MessageDecoder()

        first, second = [decoder.decode(frame) for frame in FrameSplitter.from_bytes(archive)]

        assert first.body_parts[0].payload == b"Hello world\n"
        assert second.body_parts[0].payload == b"Hello world\n"

    def test_crlf_separator_line_not_part_of_body(self, make_message):
        """Test that a CRLF separator line is dropped as a whole."""
        data = make_message().replace(b"\n", b"\r\n") + b"\r\n"

        message = MessageDecoder().decode(RawFrame(offset=0, data=data, separated=True))

        assert message.body_parts[0].payload == b"Hello world\r\n"

    def test_decoding_is_idempotent(self, make_message):
        """Test that decoding the same frame twice yields equal messages."""
        frame = RawFrame(offset=7, data=make_message(subject="=?iso-8859-1?Q?H=E9llo?="))
        decoder = MessageDecoder()

        assert decoder.decode(frame) == decoder.decode(frame)

    def test_decode_error_carries_offset(self, make_message):
        """Test that a decode error reports the frame offset."""
        frame = RawFrame(
            offset=1234,
            data=make_message(body="SGVsbG8gd29ybGQ\n", extra_headers=["Content-Transfer-Encoding: base64"]),
        )

        with pytest.raises(TruncatedPayloadError) as exc_info:
            MessageDecoder().decode(frame)

        assert exc_info.value.offset == 1234
        assert exc_info.value.kind == ErrorKind.TRUNCATED_PAYLOAD

    def test_empty_header_block(self):
        """Test that a frame without headers is rejected."""
        frame = RawFrame(offset=0, data=b"From a@b.c Thu Jan  1 00:00:00 1970\n\nbody only\n")

        with pytest.raises(MalformedHeaderError):
            MessageDecoder().decode(frame)

    def test_malformed_header_block(self):
        """Test that a malformed header block fails the frame."""
        frame = RawFrame(offset=5, data=b"From a@b.c Thu Jan  1 00:00:00 1970\nnot a header\n\nbody\n")

        with pytest.raises(DecodeError) as exc_info:
            MessageDecoder().decode(frame)

        assert exc_info.value.kind == ErrorKind.MALFORMED_HEADER
        assert exc_info.value.offset == 5


class TestBuildMessage:
    """Test the pure header/body entry point."""

    def test_build_from_parts(self):
        """Test building a message from raw header and body bytes."""
        message = build_message(b"Subject: Hi\nFrom: x@y.org\n", b"body\n", source_offset=3)

        assert message.subject == "Hi"
        assert message.sender_address == "x@y.org"
        assert message.source_offset == 3
        assert message.body_parts[0].payload == b"body\n"

    def test_fallback_charset_is_configurable(self):
        """Test decoding with a configured fallback charset."""
        message = build_message(b"Subject: Hi\n", "café".encode("cp1252"), fallback_charset="cp1252")

        assert message.body_parts[0].charset == "cp1252"
        assert message.text_body() == "café"
