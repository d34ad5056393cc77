#!/usr/bin/env python3
"""
Build script for the comments Lambda functions.

Each entry point directory under src/ is zipped together with the shared
comments_service package, so the entry point's sys.path insert resolves it.
"""
import os
import shutil
import subprocess
import sys
import zipfile
from pathlib import Path

SHARED_PACKAGE = "comments_service"
FUNCTIONS = ["comments_api", "user_comments_api", "comments_worker"]


def main():
    """Main build function"""
    project_root = Path(__file__).parent.parent
    src_dir = project_root / "src"
    build_dir = project_root / "build"
    shared_dir = src_dir / SHARED_PACKAGE

    build_dir.mkdir(exist_ok=True)

    print(f"Building Lambda functions: {FUNCTIONS}")

    for function_name in FUNCTIONS:
        function_dir = src_dir / function_name
        zip_path = build_dir / f"{function_name}.zip"

        print(f"Building {function_name}...")

        temp_dir = build_dir / f"temp_{function_name}"
        if temp_dir.exists():
            shutil.rmtree(temp_dir)
        temp_dir.mkdir()

        # Entry point directory and shared package side by side at the archive root
        shutil.copytree(function_dir, temp_dir / function_name, dirs_exist_ok=True)
        shutil.copytree(
            shared_dir,
            temp_dir / SHARED_PACKAGE,
            ignore=shutil.ignore_patterns("__pycache__", "*.pyc"),
        )

        requirements_file = function_dir / "requirements.txt"
        if requirements_file.exists():
            print(f"Installing dependencies for {function_name}...")
            subprocess.run([
                sys.executable, "-m", "pip", "install",
                "-r", str(requirements_file),
                "-t", str(temp_dir),
            ], check=True)

        print(f"Creating {function_name}.zip...")
        with zipfile.ZipFile(zip_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
            for root, _, files in os.walk(temp_dir):
                for file in files:
                    file_path = Path(root) / file
                    arcname = file_path.relative_to(temp_dir)
                    zipf.write(file_path, arcname)

        shutil.rmtree(temp_dir)

        print(f"{function_name}.zip created ({zip_path.stat().st_size} bytes)")

    print("Build complete!")


if __name__ == "__main__":
    main()
