"""Unit tests for the symbol retention stub generator."""

import re

import pytest

from capibuild.patch.stub_generator import TABLE_NAME, generate
from capibuild.patch.symbols import SYMBOL_MANIFEST


class TestStubGenerator:
    """Test cases for generate()."""

    def test_references_every_symbol_once(self):
        """Test each manifest entry appears exactly once in the table."""
        source = generate()
        for name in SYMBOL_MANIFEST:
            assert source.count(f"&{name})") == 1

    def test_preserves_manifest_order(self):
        """Test table entries follow manifest order."""
        source = generate()
        referenced = re.findall(r"reinterpret_cast<const void\*>\(&(\w+)\)", source)
        assert referenced == list(SYMBOL_MANIFEST)

    def test_table_is_exported_and_volatile(self):
        """Test the table has C linkage and cannot be optimized away."""
        source = generate(["litert_lm_engine_create"])
        assert f"const void* volatile {TABLE_NAME}[] = {{" in source
        assert source.index('extern "C" {') < source.index(TABLE_NAME)
        assert source.rstrip().endswith('}  // extern "C"')

    def test_includes_api_header(self):
        """Test the stub includes the C API header."""
        assert '#include "c/engine.h"' in generate()

    def test_load_hooks(self):
        """Test the Windows entry point and the POSIX constructor are both present."""
        source = generate()
        assert "DllMain" in source
        assert "return TRUE;" in source
        assert "__attribute__((constructor))" in source

    def test_deterministic(self):
        """Test the same manifest always yields the same text."""
        assert generate() == generate()

    def test_empty_manifest_rejected(self):
        """Test an empty manifest is an error."""
        with pytest.raises(ValueError, match="empty"):
            generate([])

    def test_invalid_name_rejected(self):
        """Test names are validated before rendering."""
        with pytest.raises(ValueError):
            generate(["not a name"])
