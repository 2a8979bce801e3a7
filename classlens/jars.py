"""
Reading class entries out of jar files.
"""

import zipfile
from pathlib import Path

from .errors import ClassLensError


def class_entry_name(class_name: str) -> str:
    """com.example.Foo -> com/example/Foo.class"""
    return class_name.replace(".", "/") + ".class"


def list_jar_classes(jar_path: str | Path) -> list[str]:
    """Top-level class names in a jar; nested classes ($) are left out."""
    names = []
    with zipfile.ZipFile(jar_path, "r") as zf:
        for entry in zf.namelist():
            if entry.endswith(".class") and "$" not in entry:
                names.append(entry[:-len(".class")].replace("/", "."))
    return names


def extract_class(jar_path: str | Path, class_name: str, dest_dir: str | Path) -> Path:
    """Write a class's .class file from a jar under dest_dir, keeping its package directories."""
    entry = class_entry_name(class_name)
    target = Path(dest_dir) / entry
    target.parent.mkdir(parents=True, exist_ok=True)

    try:
        with zipfile.ZipFile(jar_path, "r") as zf:
            data = zf.read(entry)
    except KeyError:
        raise ClassLensError(f"Class file {entry} not found in {jar_path}")
    except (OSError, zipfile.BadZipFile) as e:
        raise ClassLensError(f"Cannot read jar {jar_path}: {e}")

    target.write_bytes(data)
    return target
