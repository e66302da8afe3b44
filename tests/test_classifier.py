"""Tests for file-type classification."""

import pytest

from contextpack.filetypes import (
    SNIFF_BYTES,
    SemanticType,
    classify,
    classify_spec,
    is_sensitive_name,
    looks_binary,
)
from contextpack.paths import parse_path_spec


class TestClassify:
    @pytest.mark.parametrize(
        ("name", "semantic_type", "mime"),
        [
            ("README.md", SemanticType.TEXT, "text/markdown"),
            ("src/app.py", SemanticType.TEXT, "text/x-python"),
            ("config.yaml", SemanticType.TEXT, "text/yaml"),
            ("logo.png", SemanticType.IMAGE, "image/png"),
            ("photo.JPG", SemanticType.IMAGE, "image/jpeg"),
            ("paper.pdf", SemanticType.PDF, "application/pdf"),
            ("tool.exe", SemanticType.BINARY, "application/vnd.microsoft.portable-executable"),
            ("bundle.zip", SemanticType.BINARY, "application/zip"),
            ("icon.svg", SemanticType.TEXT, "image/svg+xml"),
        ],
    )
    def test_extension_table(self, name: str, semantic_type: SemanticType, mime: str) -> None:
        hint = classify(name)
        assert hint.semantic_type is semantic_type
        assert hint.mime == mime
        assert not hint.cautious

    @pytest.mark.parametrize("name", ["Dockerfile", "Makefile", "README", "LICENSE", ".gitignore"])
    def test_known_filenames_are_text(self, name: str) -> None:
        hint = classify(name)
        assert hint.semantic_type is SemanticType.TEXT
        assert not hint.cautious

    def test_unknown_extension_is_cautious_text(self) -> None:
        hint = classify("data.weirdext")
        assert hint.semantic_type is SemanticType.UNKNOWN
        assert hint.semantic_type.is_text_like
        assert hint.cautious
        assert hint.mime == "text/plain"

    def test_extensionless_unknown_name(self) -> None:
        hint = classify("somefile")
        assert hint.semantic_type is SemanticType.UNKNOWN
        assert hint.cautious

    def test_only_basename_matters(self) -> None:
        assert classify("a/b/c/notes.md") == classify("notes.md")

    def test_language_and_category(self) -> None:
        hint = classify("main.py")
        assert hint.language == "python"
        assert hint.category == "code"


class TestSensitive:
    @pytest.mark.parametrize(
        "name",
        [
            ".env",
            ".env.local",
            "prod.env",
            "server.pem",
            "tls.key",
            "id_rsa",
            "id_ed25519.pub",
            "db_password.txt",
            "client_secret.json",
            "aws_key",
            "api_key.txt",
            "api_key_prod.json",
            "my_keys.txt",
            "credentials.json",
            ".npmrc",
        ],
    )
    def test_sensitive_names(self, name: str) -> None:
        assert is_sensitive_name(name)
        assert classify(name).semantic_type is SemanticType.SENSITIVE

    @pytest.mark.parametrize("name", ["keyboard.py", "monkey.md", "README.md", "keys_test.go"])
    def test_ordinary_names(self, name: str) -> None:
        assert not is_sensitive_name(name)

    def test_sensitive_overlay_keeps_base_type(self) -> None:
        hint = classify(".env")
        assert hint.sensitive
        assert hint.base_type is SemanticType.TEXT
        assert hint.semantic_type is SemanticType.SENSITIVE

    def test_case_insensitive(self) -> None:
        assert is_sensitive_name("SERVER.PEM")


class TestTags:
    @pytest.mark.parametrize(
        ("name", "tag"),
        [
            ("app.min.js", "minified"),
            ("app.test.ts", "test"),
            ("button.spec.tsx", "spec"),
            ("types.d.ts", "declaration"),
            ("bundle.js.map", "source-map"),
        ],
    )
    def test_tags(self, name: str, tag: str) -> None:
        assert tag in classify(name).tags

    def test_plain_file_has_no_tags(self) -> None:
        assert classify("app.js").tags == frozenset()


class TestClassifiedFile:
    def test_classify_spec_carries_size(self) -> None:
        file = classify_spec(parse_path_spec("owner/repo:docs/logo.png@main"), 2048)
        assert file.semantic_type is SemanticType.IMAGE
        assert file.size_bytes == 2048
        assert file.name == "logo.png"
        assert file.with_size(10).size_bytes == 10

    def test_retyped_clears_cautious(self) -> None:
        file = classify_spec(parse_path_spec("blob.weirdext"))
        binary = file.retyped(SemanticType.BINARY, "application/octet-stream")
        assert binary.semantic_type is SemanticType.BINARY
        assert not binary.hint.cautious
        assert file.hint.cautious


class TestSniff:
    def test_nul_byte_means_binary(self) -> None:
        assert looks_binary(b"abc\x00def")

    def test_text_is_not_binary(self) -> None:
        assert not looks_binary("héllo wörld\n".encode())

    def test_only_prefix_is_sniffed(self) -> None:
        content = b"a" * SNIFF_BYTES + b"\x00"
        assert not looks_binary(content)
