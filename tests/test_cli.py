from __future__ import annotations

import typing as typ
from pathlib import Path

import msgspec.json as msgspec_json
import pytest

from moegirl_pages import cli
from moegirl_pages.client import MoegirlClient, PageContent, SearchResult
from moegirl_pages.config import ClientSettings
from moegirl_pages.errors import MoegirlAPIError

if typ.TYPE_CHECKING:
    from unittest.mock import Mock

    from pytest_mock import MockerFixture

PAGE_TEXT = (
    "Intro line.\n"
    "== 角色设定 ==\n"
    "{{Infobox\n"
    "|name=初音未来\n"
    "}}\n"
    "'''Miku''' sings.\n"
    "== 歌曲 ==\n"
    "{{Quote|text=Hello}}"
)


@pytest.fixture
def settings_loader(mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch) -> Mock:
    """Replace the settings reader with a mock answering defaults."""
    loader = mocker.Mock(return_value=ClientSettings())
    monkeypatch.setattr(cli, "load_settings", loader)
    return loader


@pytest.fixture
def client(
    mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch, settings_loader: Mock
) -> Mock:
    """Install a client stub in place of the configured client."""
    stub = mocker.Mock(spec=MoegirlClient)
    stub.fetch_page.return_value = PageContent(title="初音未来", pageid=123, content=PAGE_TEXT)
    stub.search.return_value = [
        SearchResult(title="初音未来", pageid=123, url="https://zh.moegirl.org.cn/index.php?curid=123")
    ]
    stub.check_connection.return_value = True
    monkeypatch.setattr(cli, "_client_for", lambda settings: stub)
    return stub


def test_search_json(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    cli.search("初音", limit=3, json_output=True)

    payload = msgspec_json.decode(capsys.readouterr().out)
    assert payload == [
        {
            "title": "初音未来",
            "pageid": 123,
            "url": "https://zh.moegirl.org.cn/index.php?curid=123",
            "snippet": "",
        }
    ]
    client.search.assert_called_once_with("初音", 3)


def test_search_failure_exits(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    client.search.side_effect = MoegirlAPIError("offline")

    with pytest.raises(SystemExit) as excinfo:
        cli.search("初音")

    assert excinfo.value.code == 1
    assert "Search failed: offline" in capsys.readouterr().err


def test_numeric_identifier_is_page_id(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    cli.toc("123")

    client.fetch_page.assert_called_once_with(pageid=123, title=None)
    out = capsys.readouterr().out
    assert out.startswith("Table of contents\n")
    assert "  • 角色设定" in out


def test_as_id_requires_digits(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit):
        cli.toc("Miku", as_id=True)

    assert "must be numeric" in capsys.readouterr().err
    client.fetch_page.assert_not_called()


def test_page_prints_toc_and_cleaned_text(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    cli.page("初音未来")

    out = capsys.readouterr().out
    assert out.index("Table of contents") < out.index("Page ID: 123")
    assert "**Miku** sings." in out
    client.fetch_page.assert_called_once_with(pageid=None, title="初音未来")


def test_page_json_raw(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    cli.page("初音未来", raw=True, json_output=True)

    payload = msgspec_json.decode(capsys.readouterr().out)
    assert payload["content"] == PAGE_TEXT
    assert payload["cleaned_content"] is None


def test_page_not_found_exits(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    client.fetch_page.return_value = None

    with pytest.raises(SystemExit) as excinfo:
        cli.page("Nope")

    assert excinfo.value.code == 1
    assert "Page not found: Nope" in capsys.readouterr().err


def test_section_json(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    cli.section("初音未来", titles=["角色"], templates=["quote"], json_output=True)

    payload = msgspec_json.decode(capsys.readouterr().out)
    assert payload["content"]["角色"] == (
        "{{Infobox\n|name=初音未来\n}}\n\n'''Miku''' sings."
    )
    assert payload["content"]["quote"][0]["parameters"] == {"text": "Hello"}


def test_section_text_separates_blocks(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    cli.section("初音未来", titles=["歌曲"], templates=["Infobox"])

    out = capsys.readouterr().out
    assert "歌曲\n" in out
    assert "Template: Infobox" in out
    assert "-" * 50 in out


def test_section_without_matches(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    cli.section("初音未来", titles=["Discography"])

    out = capsys.readouterr().out
    assert "No matching headings or templates." in out
    assert "Headings searched: Discography" in out


def test_section_requires_a_query(client: Mock) -> None:
    with pytest.raises(SystemExit):
        cli.section("初音未来")

    client.fetch_page.assert_not_called()


def test_check_reports_status(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    cli.check()
    assert capsys.readouterr().out.strip() == "API connection OK"

    client.check_connection.return_value = False
    with pytest.raises(SystemExit):
        cli.check()


def test_tool_runs_handler(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    cli.tool("get_page_structure", arguments='{"pageid": 123}')

    payload = msgspec_json.decode(capsys.readouterr().out)
    text = payload["content"][0]["text"]
    assert "Templates (2):" in text
    assert "- Quote" in text


def test_tool_list(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    cli.tool("list")

    payload = msgspec_json.decode(capsys.readouterr().out)
    assert [entry["name"] for entry in payload][0] == "search_moegirl"


@pytest.mark.parametrize(
    ("name", "arguments", "message"),
    [
        ("get_page", "{not json", "not valid JSON"),
        ("get_page", "[1, 2]", "must be a JSON object"),
        ("get_page", "{}", "'pageid' or 'title'"),
        ("rename_page", "{}", "Unknown tool"),
    ],
)
def test_tool_errors_exit(
    client: Mock,
    capsys: pytest.CaptureFixture[str],
    name: str,
    arguments: str,
    message: str,
) -> None:
    with pytest.raises(SystemExit):
        cli.tool(name, arguments=arguments)

    assert message in capsys.readouterr().err


def test_build_client_reads_settings(tmp_path: Path) -> None:
    config = tmp_path / "config.toml"
    config.write_text('[client]\napi_endpoint = "https://wiki.example/api.php"\n', encoding="utf-8")

    client = cli._build_client(config)

    assert client._api_endpoint == "https://wiki.example/api.php"


def test_build_service_shares_one_settings_read(tmp_path: Path) -> None:
    config = tmp_path / "config.toml"
    config.write_text(
        '[client]\napi_endpoint = "https://wiki.example/api.php"\nretries = 1\n\n[cache]\nttl = 60\n',
        encoding="utf-8",
    )

    service = cli._build_service(config)

    assert service.cache.default_ttl == 60.0
    assert service.client._api_endpoint == "https://wiki.example/api.php"


def test_tool_reads_settings_once(
    client: Mock, settings_loader: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.tool("list")

    settings_loader.assert_called_once_with(cli.DEFAULT_CONFIG_PATH)


@pytest.fixture
def server_factory(mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch) -> Mock:
    """Replace the MCP server builder so nothing reads stdin."""
    factory = mocker.Mock()
    monkeypatch.setattr(cli, "build_server", factory)
    return factory


def test_serve_runs_stdio_server(client: Mock, server_factory: Mock) -> None:
    cli.serve()

    client.check_connection.assert_called_once_with()
    service = server_factory.call_args.args[0]
    assert service.client is client
    server_factory.return_value.run.assert_called_once_with(transport="stdio")


def test_serve_exits_when_api_unreachable(
    client: Mock, server_factory: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    client.check_connection.return_value = False

    with pytest.raises(SystemExit) as excinfo:
        cli.serve()

    assert excinfo.value.code == 1
    assert "API connection failed" in capsys.readouterr().err
    server_factory.assert_not_called()


def test_serve_skip_check(client: Mock, server_factory: Mock) -> None:
    cli.serve(skip_check=True)

    client.check_connection.assert_not_called()
    server_factory.return_value.run.assert_called_once_with(transport="stdio")
