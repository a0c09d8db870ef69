"""Source edits applied to the external checkout.

Pure text transforms, one per patch. Each transform checks for its own
marker text first so applying it to already-patched text is a no-op.
File I/O and backups live in manager.py.
"""

import re
from dataclasses import dataclass, field
from typing import List, Tuple

from ..errors import PatchApplyError
from .symbols import SET_CACHE_DIR_SYMBOL

INJECTED_MARKER = "# --- capibuild: litert_lm_capi shared library (injected) ---"

ENGINE_TARGET = ":engine"
ALWAYSLINK_TARGET = "engine_alwayslink"

_EXTERN_C_CLOSE = re.compile(r'^\}[ \t]*//[ \t]*extern[ \t]+"C"[ \t]*$', re.MULTILINE)
_CPLUSPLUS_GUARD = re.compile(r"^#\s*(ifdef\s+__cplusplus|if\s+defined\s*\(?\s*__cplusplus\s*\)?)\s*(//.*)?$")

HEADER_DECLARATION = """\
// Sets the directory used to cache compiled model artifacts. Applies to the
// main executor and, if configured, the vision executor.
{export}void {symbol}(LiteRtLmEngineSettings* settings,
{indent}const char* cache_dir);

"""

IMPL_DEFINITION = """\
void {symbol}(LiteRtLmEngineSettings* settings,
{indent}const char* cache_dir) {{
  if (settings == nullptr || settings->settings == nullptr ||
      cache_dir == nullptr) {{
    return;
  }}
  const std::string dir(cache_dir);
  settings->settings->GetMutableMainExecutorSettings().SetCacheDir(dir);
  auto& vision = settings->settings->GetMutableVisionExecutorSettings();
  if (vision.has_value()) {{
    vision->SetCacheDir(dir);
  }}
}}

"""


@dataclass
class InjectedTarget:
    """A Bazel target added to the manifest for the duration of the build."""

    name: str
    rule: str
    srcs: List[str] = field(default_factory=list)
    deps: List[str] = field(default_factory=list)
    shared: bool = False
    alwayslink: bool = False
    visibility: str = "//visibility:public"

    def render(self) -> str:
        """Render the target as Starlark."""
        lines = [f"{self.rule}(", f'    name = "{self.name}",']
        if self.srcs:
            lines.append(f"    srcs = [{', '.join(_quote(s) for s in self.srcs)}],")
        if self.deps:
            lines.append(f"    deps = [{', '.join(_quote(d) for d in self.deps)}],")
        if self.alwayslink:
            lines.append("    alwayslink = True,")
        if self.shared:
            lines.append("    linkshared = True,")
        lines.append(f'    visibility = ["{self.visibility}"],')
        lines.append(")")
        return "\n".join(lines)


def _quote(value: str) -> str:
    return f'"{value}"'


def injected_targets(library_name: str, stub_name: str) -> List[InjectedTarget]:
    """Targets for the force-linked engine wrapper and the shared library."""
    return [
        InjectedTarget(
            name=ALWAYSLINK_TARGET,
            rule="cc_library",
            deps=[ENGINE_TARGET],
            alwayslink=True,
        ),
        InjectedTarget(
            name=library_name,
            rule="cc_binary",
            srcs=[stub_name],
            deps=[f":{ALWAYSLINK_TARGET}"],
            shared=True,
        ),
    ]


def render_manifest_block(targets: List[InjectedTarget]) -> str:
    """Render the marked block appended to the manifest."""
    body = "\n\n".join(target.render() for target in targets)
    return f"{INJECTED_MARKER}\n\n{body}\n"


def strip_injected_block(text: str) -> Tuple[str, bool]:
    """Remove a block left behind by an interrupted run.

    Everything from one character before the marker to end of file is
    dropped and trailing whitespace trimmed.

    Returns:
        Tuple of (text, stripped)
    """
    index = text.find(INJECTED_MARKER)
    if index < 0:
        return text, False
    return text[: max(0, index - 1)].rstrip(), True


def append_manifest_block(text: str, block: str) -> str:
    """Strip any leftover block, then append a fresh one."""
    base, _ = strip_injected_block(text)
    return f"{base.rstrip()}\n\n{block}"


def _export_prefix(header_text: str) -> str:
    """Export macros used by existing declarations (e.g. LITERT_LM_C_API_EXPORT)."""
    match = re.search(
        r"^((?:[A-Z][A-Z0-9_]*[ \t]+)*)void[ \t]+litert_lm_\w+[ \t]*\(",
        header_text,
        re.MULTILINE,
    )
    return match.group(1) if match else ""


def _last_extern_c_close(text: str, path_label: str) -> int:
    matches = list(_EXTERN_C_CLOSE.finditer(text))
    if not matches:
        raise PatchApplyError(
            f'No closing extern "C" block found in {path_label}',
            hint='The file layout changed; expected a line like: }  // extern "C"',
        )
    return matches[-1].start()


def insert_header_declaration(text: str, path_label: str = "header") -> Tuple[str, bool]:
    """Declare the cache directory setter before the extern "C" guard closes.

    Returns:
        Tuple of (text, changed)

    Raises:
        PatchApplyError: If the extern "C" guard is not found
    """
    if re.search(rf"\b{SET_CACHE_DIR_SYMBOL}\s*\(", text):
        return text, False

    position = _last_extern_c_close(text, path_label)

    # Step back over the "#ifdef __cplusplus" wrapping the closing brace
    before = text[:position].rstrip("\n")
    previous_start = before.rfind("\n") + 1
    if _CPLUSPLUS_GUARD.match(before[previous_start:].strip()):
        position = previous_start

    export = _export_prefix(text)
    declaration = HEADER_DECLARATION.format(
        export=export,
        symbol=SET_CACHE_DIR_SYMBOL,
        indent=" " * (len(export) + len(f"void {SET_CACHE_DIR_SYMBOL}(")),
    )
    return text[:position] + declaration + text[position:], True


def insert_impl_definition(text: str, path_label: str = "implementation") -> Tuple[str, bool]:
    """Define the cache directory setter before the extern "C" region ends.

    Returns:
        Tuple of (text, changed)

    Raises:
        PatchApplyError: If the extern "C" region end is not found
    """
    if re.search(rf"\b{SET_CACHE_DIR_SYMBOL}\s*\([^;]*\)\s*\{{", text):
        return text, False

    position = _last_extern_c_close(text, path_label)
    definition = IMPL_DEFINITION.format(
        symbol=SET_CACHE_DIR_SYMBOL,
        indent=" " * len(f"void {SET_CACHE_DIR_SYMBOL}("),
    )
    return text[:position] + definition + text[position:], True
