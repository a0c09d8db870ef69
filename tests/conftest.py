"""Shared fixtures: a minimal LiteRT-LM checkout laid out like the real one."""

from pathlib import Path

import pytest

from capibuild.patch.symbols import SET_CACHE_DIR_SYMBOL, SYMBOL_MANIFEST
from capibuild.toolchain.platform_utils import PlatformDetector

HEADER_SYMBOLS = [name for name in SYMBOL_MANIFEST if name != SET_CACHE_DIR_SYMBOL]

ENGINE_H = (
    "#ifndef THIRD_PARTY_ODML_LITERT_LM_C_ENGINE_H_\n"
    "#define THIRD_PARTY_ODML_LITERT_LM_C_ENGINE_H_\n"
    "\n"
    "#include <stdbool.h>\n"
    "#include <stddef.h>\n"
    "\n"
    "#ifdef __cplusplus\n"
    'extern "C" {\n'
    "#endif  // __cplusplus\n"
    "\n"
    "typedef struct LiteRtLmEngineSettings LiteRtLmEngineSettings;\n"
    "\n"
    + "".join(f"LITERT_LM_C_API_EXPORT void {name}(void* handle);\n" for name in HEADER_SYMBOLS)
    + "\n"
    "#ifdef __cplusplus\n"
    '}  // extern "C"\n'
    "#endif  // __cplusplus\n"
    "\n"
    "#endif  // THIRD_PARTY_ODML_LITERT_LM_C_ENGINE_H_\n"
)

ENGINE_CC = (
    '#include "c/engine.h"\n'
    "\n"
    "#include <memory>\n"
    "#include <string>\n"
    "\n"
    "struct LiteRtLmEngineSettings {\n"
    "  std::unique_ptr<litert::lm::EngineSettings> settings;\n"
    "};\n"
    "\n"
    'extern "C" {\n'
    "\n"
    + "".join(f"void {name}(void* handle) {{ (void)handle; }}\n" for name in HEADER_SYMBOLS)
    + "\n"
    '}  // extern "C"\n'
)

BUILD_FILE = (
    'package(default_visibility = ["//visibility:public"])\n'
    "\n"
    "cc_library(\n"
    '    name = "engine",\n'
    '    srcs = ["engine.cc"],\n'
    '    hdrs = ["engine.h"],\n'
    ")\n"
)


def make_source_tree(root: Path) -> Path:
    """Create a checkout under root and return root."""
    api_dir = root / "c"
    api_dir.mkdir(parents=True, exist_ok=True)
    (api_dir / "engine.h").write_text(ENGINE_H, encoding="utf-8")
    (api_dir / "engine.cc").write_text(ENGINE_CC, encoding="utf-8")
    (api_dir / "BUILD").write_text(BUILD_FILE, encoding="utf-8")
    return root


def snapshot(root: Path) -> dict:
    """Bytes of every file under root, keyed by relative path."""
    return {
        str(path.relative_to(root)): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture
def source_root(tmp_path):
    """A fresh LiteRT-LM checkout."""
    return make_source_tree(tmp_path / "LiteRT-LM")


@pytest.fixture
def linux_profile():
    """Platform table for linux_x86_64."""
    return PlatformDetector.get_profile("Linux", "x86_64")


@pytest.fixture
def windows_profile():
    """Platform table for windows_x86_64."""
    return PlatformDetector.get_profile("Windows", "AMD64")


@pytest.fixture
def make_tree():
    """Factory creating a checkout under a given root."""
    return make_source_tree


@pytest.fixture
def tree_snapshot():
    """Function returning the bytes of every file under a root."""
    return snapshot


@pytest.fixture
def engine_h():
    """Unpatched C API header text."""
    return ENGINE_H


@pytest.fixture
def engine_cc():
    """Unpatched C API implementation text."""
    return ENGINE_CC


@pytest.fixture
def build_file():
    """Unpatched Bazel manifest text."""
    return BUILD_FILE
