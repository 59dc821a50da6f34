"""Fixed packing policy shared by the pipeline and its config layer."""

from __future__ import annotations

from typing import FrozenSet, Tuple

DEFAULT_IGNORE_PATTERNS: Tuple[str, ...] = (
    "node_modules/**",
    ".git/**",
    ".github/**",
    ".vscode/**",
    "dist/**",
    "build/**",
    ".next/**",
    "coverage/**",
    ".cache/**",
    ".idea/**",
    "**/*.log",
    "**/.DS_Store",
    "**/npm-debug.log*",
    "**/yarn-debug.log*",
    "**/yarn-error.log*",
    "**/*lock.json",
    "**/*lock.yaml",
)

DEFAULT_TEXT_EXTENSIONS: FrozenSet[str] = frozenset(
    {
        # documents
        "txt",
        "md",
        "rst",
        # source
        "js",
        "jsx",
        "mjs",
        "cjs",
        "ts",
        "tsx",
        "vue",
        "svelte",
        "py",
        "rb",
        "php",
        "go",
        "rs",
        "java",
        "kt",
        "c",
        "h",
        "cpp",
        "hpp",
        "sh",
        "sql",
        "graphql",
        # markup and style
        "html",
        "xml",
        "svg",
        "css",
        "scss",
        "less",
        # config
        "json",
        "yml",
        "yaml",
        "toml",
        "ini",
        "cfg",
        "env",
        "csv",
    }
)

KIB = 1024
MAX_FILE_SIZE = 100 * KIB
MAX_TOTAL_SIZE = 500 * KIB

ARTIFACT_ID = "imported-files"
ARTIFACT_TITLE = "Git Cloned Files"
ARTIFACT_TAG = "boltArtifact"
ACTION_TAG = "boltAction"

BINARY_SNIFF_BYTES = 8000

CONFIG_FILENAME = ".clonepack.yml"
