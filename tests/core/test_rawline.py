from __future__ import annotations

from querylog_search.core.rawline import JsonLine, normalize_ip, read_json_value

LINE = '{"T":"2025-12-30T08:12:02Z","QH":"ads.example.com","QT":"A","IP":"192.168.1.20","CID":"tv"}'


def test_read_json_value() -> None:
    assert read_json_value(LINE, "QH") == "ads.example.com"
    assert read_json_value(LINE, "IP") == "192.168.1.20"
    assert read_json_value(LINE, "CID") == "tv"


def test_missing_field_reads_empty() -> None:
    assert read_json_value(LINE, "Upstream") == ""
    assert read_json_value("", "QH") == ""
    assert read_json_value("garbage", "QH") == ""


def test_unterminated_value_reads_empty() -> None:
    assert read_json_value('{"QH":"example.co', "QH") == ""
    assert read_json_value('{"QH":"trailing\\', "QH") == ""


def test_non_string_value_reads_empty() -> None:
    assert read_json_value('{"QH":null,"IP":"1.2.3.4"}', "QH") == ""


def test_whitespace_around_colon() -> None:
    assert read_json_value('{"QH": "example.com"}', "QH") == "example.com"


def test_escapes_are_decoded() -> None:
    assert read_json_value('{"QH":"a\\"b.example","IP":"1.1.1.1"}', "QH") == 'a"b.example'
    assert read_json_value('{"QH":"\\u00fcber.example"}', "QH") == "über.example"


def test_key_is_not_matched_as_prefix() -> None:
    line = '{"Result":{"IPList":["1.1.1.1"]},"IP":"10.0.0.1"}'
    assert read_json_value(line, "IP") == "10.0.0.1"


def test_normalize_ip() -> None:
    assert normalize_ip("192.168.1.1") == "192.168.1.1"
    assert normalize_ip("2001:DB8:0:0::1") == "2001:db8::1"
    assert normalize_ip("not-an-ip") == ""
    assert normalize_ip("") == ""


def test_json_line_record() -> None:
    rec = JsonLine('{"QH":"example.com","IP":"2001:DB8::1","CID":"abc"}')
    assert rec.host() == "example.com"
    assert rec.ip() == "2001:db8::1"
    assert rec.client_id() == "abc"


def test_nested_keys_are_ignored() -> None:
    line = (
        '{"QH":"ads.example.com","Result":{"IsFiltered":true,"Reason":3,'
        '"Rules":[{"Text":"0.0.0.0 ads.example.com","IP":"0.0.0.0","FilterListID":1}],'
        '"QH":"nested.example","CID":"nested"},"Elapsed":1,"IP":"192.168.1.20"}'
    )
    assert read_json_value(line, "IP") == "192.168.1.20"
    assert read_json_value(line, "QH") == "ads.example.com"
    assert read_json_value(line, "CID") == ""


def test_key_text_inside_values_is_ignored() -> None:
    line = '{"Upstream":"\\"IP\\":\\"1.1.1.1\\"","IP":"10.0.0.1"}'
    assert read_json_value(line, "IP") == "10.0.0.1"


def test_duplicate_keys_last_wins() -> None:
    assert read_json_value('{"QH":"a.example","QH":"b.example"}', "QH") == "b.example"
    assert read_json_value('{"QH":"a.example","QH":null}', "QH") == ""
