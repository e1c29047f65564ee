"""
Tests for output parsing — pure text in, fields out.
"""

import textwrap

from flowplane.core.services.output_parsing import (
    node_ready,
    node_updated,
    parse_created_node,
    parse_field,
    parse_install_output,
    parse_table_addresses,
)

INSTALL_OUTPUT = textwrap.dedent("""\
    Running install...
    Core Hosts:
    +-------------+
    | 192.168.99.101 |
    +-------------+
    +-------------+-------+
    | Service     | Port  |
    | tsuru_tsuru | 8080  |
    +-------------+-------+
    Apps Hosts:
    | https://192.168.99.102:2376 |
    | https://192.168.99.103:2376 |
    Configured default user:
    Username: admin@example.com
    Password: s3cr3t
""")


class TestInstallOutput:
    def test_parses_everything(self):
        info = parse_install_output(INSTALL_OUTPUT)
        assert info.target_host == "192.168.99.101"
        assert info.target_port == "8080"
        assert info.target_address == "http://192.168.99.101:8080"
        assert info.node_urls == ["https://192.168.99.102:2376", "https://192.168.99.103:2376"]
        assert info.username == "admin@example.com"
        assert info.password == "s3cr3t"

    def test_empty_text(self):
        info = parse_install_output("")
        assert info.target_address == ""
        assert info.node_urls == []
        assert info.username == ""


class TestNodeEvents:
    def test_created_node(self):
        text = "2017-01-01 node.create(node: http://10.0.0.5:2376 ) ok\n"
        assert parse_created_node(text) == "http://10.0.0.5:2376"

    def test_no_created_node(self):
        assert parse_created_node("app.create foo") is None

    def test_node_updated(self):
        text = "node.update(node: 10.0.0.7) ok"
        assert node_updated(text, "10.0.0.7")
        assert not node_updated(text, "10.0.0.8")

    def test_node_ready(self):
        listing = "| http://10.0.0.5:2376 | ipool-docker | ready |"
        assert node_ready(listing, "http://10.0.0.5:2376")
        assert not node_ready(listing, "http://10.0.0.6:2376")
        assert not node_ready(listing, "http://10.0.0.5:2376", "Ready")


class TestTables:
    def test_addresses_in_first_column(self):
        text = textwrap.dedent("""\
            +--------------+---------+
            | Address      | Status  |
            +--------------+---------+
            | 10.128.0.2   | Ready   |
            | https://10.128.0.3:443 | Ready |
            +--------------+---------+
        """)
        assert parse_table_addresses(text) == ["10.128.0.2", "https://10.128.0.3:443"]

    def test_parse_field(self):
        text = "Application: iapp\nPlatform: iplat-go\nAddress: iapp.example.com\n"
        assert parse_field(text, "Platform") == "iplat-go"
        assert parse_field(text, "Address") == "iapp.example.com"
        assert parse_field(text, "Owner") is None
