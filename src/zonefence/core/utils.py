from __future__ import annotations

import os


def to_posix(path: str) -> str:
    if os.sep == "/":
        return path
    return path.replace(os.sep, "/")


def normalize_dir(path: str) -> str:
    return to_posix(os.path.normpath(path))


def relative_path(start: str, target: str) -> str:
    """Relative path from `start` to `target` with POSIX separators."""
    try:
        rel = os.path.relpath(target, start)
    except ValueError:
        # Different drives on Windows; there is no relative form.
        return to_posix(target)
    return to_posix(rel)


def escapes_upward(rel: str) -> bool:
    return rel == ".." or rel.startswith("../")


def is_within(root: str, target: str) -> bool:
    """True when `target` is `root` or nested below it."""
    if not root or not target:
        return False
    try:
        root_norm = os.path.normpath(root)
        target_norm = os.path.normpath(target)
        return os.path.commonpath([root_norm, target_norm]) == root_norm
    except ValueError:
        return False


def is_strict_descendant(root: str, target: str) -> bool:
    return is_within(root, target) and os.path.normpath(root) != os.path.normpath(
        target
    )


def path_depth(path: str) -> int:
    parts = [part for part in to_posix(os.path.normpath(path)).split("/") if part]
    return len(parts)


def _skip_quoted(text: str, index: int) -> int:
    quote = text[index]
    index += 1
    while index < len(text) and text[index] != quote:
        index += 2 if text[index] == "\\" else 1
    return index + 1


def _skip_braces(text: str, index: int) -> int:
    depth = 1
    while index < len(text):
        char = text[index]
        if char == "`":
            index = _skip_template(text, index)
            continue
        if char in "\"'":
            index = _skip_quoted(text, index)
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    return index


def _skip_template(text: str, index: int) -> int:
    """Index just past the template literal opening at `index`."""
    index += 1
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == "`":
            return index + 1
        if text.startswith("${", index):
            index = _skip_braces(text, index + 2)
            continue
        index += 1
    return len(text)


def _blank(segment: str) -> str:
    return "".join("\n" if char == "\n" else " " for char in segment)


def blank_comments(text: str, *, blank_templates: bool = False) -> str:
    """Replace `//` and `/* */` comments with spaces.

    Newlines are kept and string literals are left untouched, so offsets in
    the result line up with the original text. With `blank_templates`,
    template literals (including `${}` expressions) are blanked as well.
    """
    out = []
    index = 0
    length = len(text)
    quote = None
    while index < length:
        char = text[index]
        if quote is not None:
            out.append(char)
            if char == "\\" and index + 1 < length:
                out.append(text[index + 1])
                index += 2
                continue
            if char == quote:
                quote = None
            index += 1
            continue
        if char == "`" and blank_templates:
            end = min(_skip_template(text, index), length)
            out.append(_blank(text[index:end]))
            index = end
            continue
        if char in "\"'`":
            quote = char
            out.append(char)
            index += 1
            continue
        if text.startswith("//", index):
            end = text.find("\n", index)
            end = length if end == -1 else end
            out.append(" " * (end - index))
            index = end
            continue
        if text.startswith("/*", index):
            end = text.find("*/", index + 2)
            end = length if end == -1 else end + 2
            out.append(_blank(text[index:end]))
            index = end
            continue
        out.append(char)
        index += 1
    return "".join(out)
