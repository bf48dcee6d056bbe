"""Tests for tree-sitter Java parser wrapper."""

import logging
from pathlib import Path


from queryleak.parser import (
    create_parser,
    get_java_language,
    parse_bytes,
    parse_file,
)


def test_get_java_language_returns_language():
    """get_java_language() returns a tree-sitter Language object."""
    lang = get_java_language()
    assert lang is not None
    assert lang


def test_create_parser_returns_parser():
    """create_parser() returns a configured Parser."""
    parser = create_parser()
    assert parser is not None
    assert parser.language is not None


def test_parse_bytes_success(caplog):
    """Parsing valid Java source succeeds and logs."""
    source = b"class A { int f() { return 0; } }"
    parser = create_parser()
    with caplog.at_level(logging.DEBUG):
        tree = parse_bytes(source, parser=parser)
    assert tree is not None
    assert not tree.root_node.has_error
    assert tree.root_node.type == "program"
    assert "Parse" in caplog.text


def test_parse_bytes_invalid_java_logs_failure(caplog):
    """Parsing invalid Java logs a warning when the tree has errors."""
    source = b"class A { void f( { broken"
    with caplog.at_level(logging.WARNING):
        tree = parse_bytes(source)
    assert tree.root_node is not None
    assert tree.root_node.has_error
    assert "errors" in caplog.text


def test_parse_file_sample_java():
    """Parser parses the small Java sample file successfully."""
    sample_path = Path(__file__).parent / "Sample.java"
    assert sample_path.exists(), "tests/Sample.java must exist"
    tree = parse_file(sample_path)
    assert tree is not None
    assert not tree.root_node.has_error
    assert tree.root_node.type == "program"


def test_parse_file_nonexistent(caplog):
    """parse_file() on nonexistent path returns None and logs error."""
    with caplog.at_level(logging.ERROR):
        tree = parse_file(Path("/nonexistent/Sample.java"))
    assert tree is None
    assert "Failed to read" in caplog.text
