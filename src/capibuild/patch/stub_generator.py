"""Symbol Retention Stub Generator.

Shared-library builds that wrap a static dependency can drop object code no
one references, even with alwayslink set on the dependency. The stub takes
the address of every API symbol into an exported volatile table so the
linker must keep all of them.

Generated translation unit:
    - includes the C API header
    - a load hook that only reports success (DllMain on Windows, an empty
      constructor elsewhere)
    - extern "C" const void* volatile litert_lm_capi_retained_symbols[]
"""

from typing import Iterable

from .symbols import SYMBOL_MANIFEST, validate_manifest

TABLE_NAME = "litert_lm_capi_retained_symbols"

_HEADER = """\
// Generated by capibuild. Removed again when the build finishes.
// Keeps every C API symbol reachable so the shared library exports them.

#include "c/engine.h"

#if defined(_WIN32)
#define WIN32_LEAN_AND_MEAN
#include <windows.h>

BOOL APIENTRY DllMain(HMODULE module, DWORD reason, LPVOID reserved) {
  (void)module;
  (void)reason;
  (void)reserved;
  return TRUE;
}
#else
__attribute__((constructor)) static void litert_lm_capi_on_load(void) {}
#endif
"""


def generate(symbols: Iterable[str] = SYMBOL_MANIFEST) -> str:
    """Generate the stub source text.

    Args:
        symbols: Ordered symbol names to retain

    Returns:
        C++ source text of the stub translation unit
    """
    names = validate_manifest(symbols)
    if not names:
        raise ValueError("Symbol manifest is empty")
    entries = "\n".join(f"    reinterpret_cast<const void*>(&{name})," for name in names)

    lines = [
        _HEADER,
        'extern "C" {',
        "",
        f"const void* volatile {TABLE_NAME}[] = {{",
        entries,
        "};",
        "",
        f"const unsigned long {TABLE_NAME}_count =",
        f"    sizeof({TABLE_NAME}) / sizeof({TABLE_NAME}[0]);",
        "",
        '}  // extern "C"',
        "",
    ]
    return "\n".join(lines)
