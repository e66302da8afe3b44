"""Static lookup tables for file classification.

Extension keys are lowercase and include the leading dot. Each entry is
``(semantic_type, category, mime, language)``.
"""

from contextpack.filetypes.types import SemanticType

T = SemanticType.TEXT
I = SemanticType.IMAGE  # noqa: E741
P = SemanticType.PDF
B = SemanticType.BINARY

EXTENSIONS: dict[str, tuple[SemanticType, str, str, str | None]] = {
    # Source code
    ".js": (T, "code", "application/javascript", "javascript"),
    ".mjs": (T, "code", "application/javascript", "javascript"),
    ".cjs": (T, "code", "application/javascript", "javascript"),
    ".ts": (T, "code", "application/typescript", "typescript"),
    ".jsx": (T, "code", "text/jsx", "javascript"),
    ".tsx": (T, "code", "text/tsx", "typescript"),
    ".py": (T, "code", "text/x-python", "python"),
    ".pyi": (T, "code", "text/x-python", "python"),
    ".java": (T, "code", "text/x-java", "java"),
    ".cpp": (T, "code", "text/x-c++", "cpp"),
    ".cc": (T, "code", "text/x-c++", "cpp"),
    ".hpp": (T, "code", "text/x-c++", "cpp"),
    ".c": (T, "code", "text/x-c", "c"),
    ".h": (T, "code", "text/x-c", "c"),
    ".cs": (T, "code", "text/x-csharp", "csharp"),
    ".go": (T, "code", "text/x-go", "go"),
    ".rs": (T, "code", "text/x-rust", "rust"),
    ".rb": (T, "code", "text/x-ruby", "ruby"),
    ".php": (T, "code", "text/x-php", "php"),
    ".swift": (T, "code", "text/x-swift", "swift"),
    ".kt": (T, "code", "text/x-kotlin", "kotlin"),
    ".scala": (T, "code", "text/x-scala", "scala"),
    ".r": (T, "code", "text/x-r", "r"),
    ".m": (T, "code", "text/x-objc", "objc"),
    ".sh": (T, "code", "text/x-sh", "bash"),
    ".bash": (T, "code", "text/x-sh", "bash"),
    ".zsh": (T, "code", "text/x-sh", "zsh"),
    ".fish": (T, "code", "text/x-sh", "fish"),
    ".ps1": (T, "code", "text/x-powershell", "powershell"),
    ".lua": (T, "code", "text/x-lua", "lua"),
    ".dart": (T, "code", "text/x-dart", "dart"),
    ".elm": (T, "code", "text/x-elm", "elm"),
    ".clj": (T, "code", "text/x-clojure", "clojure"),
    ".ex": (T, "code", "text/x-elixir", "elixir"),
    ".exs": (T, "code", "text/x-elixir", "elixir"),
    ".erl": (T, "code", "text/x-erlang", "erlang"),
    ".hs": (T, "code", "text/x-haskell", "haskell"),
    ".ml": (T, "code", "text/x-ocaml", "ocaml"),
    ".fs": (T, "code", "text/x-fsharp", "fsharp"),
    ".nim": (T, "code", "text/x-nim", "nim"),
    ".zig": (T, "code", "text/x-zig", "zig"),
    ".v": (T, "code", "text/x-v", "v"),
    ".sol": (T, "code", "text/x-solidity", "solidity"),
    ".sql": (T, "code", "text/x-sql", "sql"),
    ".graphql": (T, "code", "text/graphql", "graphql"),
    ".proto": (T, "code", "text/x-protobuf", "protobuf"),
    ".css": (T, "code", "text/css", "css"),
    ".scss": (T, "code", "text/x-scss", "scss"),
    ".vue": (T, "code", "text/x-vue", "vue"),
    ".svelte": (T, "code", "text/x-svelte", "svelte"),
    # Markup
    ".html": (T, "markup", "text/html", "html"),
    ".htm": (T, "markup", "text/html", "html"),
    ".xml": (T, "markup", "text/xml", "xml"),
    ".svg": (T, "markup", "image/svg+xml", "svg"),
    # Prose
    ".md": (T, "text", "text/markdown", "markdown"),
    ".markdown": (T, "text", "text/markdown", "markdown"),
    ".mdx": (T, "text", "text/markdown", "markdown"),
    ".rst": (T, "text", "text/x-rst", "restructuredtext"),
    ".txt": (T, "text", "text/plain", "plaintext"),
    ".log": (T, "text", "text/plain", "log"),
    # Config
    ".json": (T, "config", "application/json", "json"),
    ".jsonc": (T, "config", "application/json", "json"),
    ".yaml": (T, "config", "text/yaml", "yaml"),
    ".yml": (T, "config", "text/yaml", "yaml"),
    ".toml": (T, "config", "text/toml", "toml"),
    ".ini": (T, "config", "text/ini", "ini"),
    ".cfg": (T, "config", "text/ini", "ini"),
    ".env": (T, "config", "text/plain", "dotenv"),
    ".properties": (T, "config", "text/plain", "properties"),
    ".lock": (T, "config", "text/plain", None),
    # Data
    ".csv": (T, "data", "text/csv", "csv"),
    ".tsv": (T, "data", "text/tab-separated-values", "tsv"),
    ".jsonl": (T, "data", "application/jsonl", "json"),
    ".map": (T, "data", "application/json", "json"),
    ".ipynb": (T, "notebook", "application/x-ipynb+json", "jupyter"),
    # Images
    ".png": (I, "image", "image/png", None),
    ".jpg": (I, "image", "image/jpeg", None),
    ".jpeg": (I, "image", "image/jpeg", None),
    ".gif": (I, "image", "image/gif", None),
    ".bmp": (I, "image", "image/bmp", None),
    ".webp": (I, "image", "image/webp", None),
    ".ico": (I, "image", "image/x-icon", None),
    ".tiff": (I, "image", "image/tiff", None),
    ".tif": (I, "image", "image/tiff", None),
    # Documents
    ".pdf": (P, "document", "application/pdf", None),
    ".doc": (B, "document", "application/msword", None),
    ".docx": (
        B,
        "document",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        None,
    ),
    ".xls": (B, "document", "application/vnd.ms-excel", None),
    ".xlsx": (
        B,
        "document",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        None,
    ),
    ".ppt": (B, "document", "application/vnd.ms-powerpoint", None),
    ".pptx": (
        B,
        "document",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        None,
    ),
    ".odt": (B, "document", "application/vnd.oasis.opendocument.text", None),
    ".ods": (B, "document", "application/vnd.oasis.opendocument.spreadsheet", None),
    # Archives
    ".zip": (B, "archive", "application/zip", None),
    ".tar": (B, "archive", "application/x-tar", None),
    ".gz": (B, "archive", "application/gzip", None),
    ".tgz": (B, "archive", "application/gzip", None),
    ".bz2": (B, "archive", "application/x-bzip2", None),
    ".xz": (B, "archive", "application/x-xz", None),
    ".rar": (B, "archive", "application/x-rar", None),
    ".7z": (B, "archive", "application/x-7z-compressed", None),
    ".jar": (B, "archive", "application/java-archive", None),
    # Media
    ".mp3": (B, "media", "audio/mpeg", None),
    ".wav": (B, "media", "audio/wav", None),
    ".ogg": (B, "media", "audio/ogg", None),
    ".flac": (B, "media", "audio/flac", None),
    ".mp4": (B, "media", "video/mp4", None),
    ".mov": (B, "media", "video/quicktime", None),
    ".avi": (B, "media", "video/x-msvideo", None),
    ".webm": (B, "media", "video/webm", None),
    ".mkv": (B, "media", "video/x-matroska", None),
    # Fonts
    ".ttf": (B, "font", "font/ttf", None),
    ".otf": (B, "font", "font/otf", None),
    ".woff": (B, "font", "font/woff", None),
    ".woff2": (B, "font", "font/woff2", None),
    # Executables and compiled artifacts
    ".exe": (B, "binary", "application/vnd.microsoft.portable-executable", None),
    ".dll": (B, "binary", "application/x-msdownload", None),
    ".so": (B, "binary", "application/x-sharedlib", None),
    ".dylib": (B, "binary", "application/x-mach-binary", None),
    ".bin": (B, "binary", "application/octet-stream", None),
    ".o": (B, "binary", "application/x-object", None),
    ".a": (B, "binary", "application/x-archive", None),
    ".class": (B, "binary", "application/java-vm", None),
    ".pyc": (B, "binary", "application/x-python-code", None),
    ".wasm": (B, "binary", "application/wasm", None),
    ".sqlite": (B, "binary", "application/vnd.sqlite3", None),
    ".db": (B, "binary", "application/octet-stream", None),
}

# Extensionless (or dot-prefixed) names with a fixed text type
KNOWN_FILENAMES: dict[str, tuple[str, str, str | None]] = {
    "Dockerfile": ("config", "text/x-dockerfile", "dockerfile"),
    "Containerfile": ("config", "text/x-dockerfile", "dockerfile"),
    "Makefile": ("code", "text/x-makefile", "makefile"),
    "GNUmakefile": ("code", "text/x-makefile", "makefile"),
    "Jenkinsfile": ("code", "text/x-groovy", "groovy"),
    "Vagrantfile": ("code", "text/x-ruby", "ruby"),
    "Gemfile": ("config", "text/x-ruby", "ruby"),
    "Rakefile": ("code", "text/x-ruby", "ruby"),
    "Procfile": ("config", "text/plain", None),
    "Brewfile": ("config", "text/x-ruby", "ruby"),
    "README": ("text", "text/plain", "plaintext"),
    "LICENSE": ("text", "text/plain", "plaintext"),
    "LICENCE": ("text", "text/plain", "plaintext"),
    "COPYING": ("text", "text/plain", "plaintext"),
    "NOTICE": ("text", "text/plain", "plaintext"),
    "AUTHORS": ("text", "text/plain", "plaintext"),
    "CHANGELOG": ("text", "text/plain", "plaintext"),
    "CODEOWNERS": ("config", "text/plain", None),
    "VERSION": ("text", "text/plain", "plaintext"),
    ".gitignore": ("config", "text/plain", "gitignore"),
    ".gitattributes": ("config", "text/plain", None),
    ".gitmodules": ("config", "text/plain", None),
    ".dockerignore": ("config", "text/plain", "gitignore"),
    ".editorconfig": ("config", "text/ini", "ini"),
    ".npmignore": ("config", "text/plain", "gitignore"),
    ".prettierrc": ("config", "application/json", "json"),
    ".eslintrc": ("config", "application/json", "json"),
    ".babelrc": ("config", "application/json", "json"),
    ".nvmrc": ("config", "text/plain", None),
    ".python-version": ("config", "text/plain", None),
    ".npmrc": ("config", "text/ini", "ini"),
    ".pypirc": ("config", "text/ini", "ini"),
    ".bashrc": ("code", "text/x-sh", "bash"),
    ".zshrc": ("code", "text/x-sh", "zsh"),
    ".profile": ("code", "text/x-sh", "bash"),
}

# fnmatch patterns, matched case-insensitively against the basename
SENSITIVE_PATTERNS: tuple[str, ...] = (
    ".env",
    ".env.*",
    "*.env",
    "*secret*",
    "*password*",
    "*passwd*",
    "*_key*",
    "*.pem",
    "*.key",
    "id_rsa*",
    "id_dsa*",
    "id_ecdsa*",
    "id_ed25519*",
    "*.p12",
    "*.pfx",
    "*.keystore",
    "*.jks",
    ".npmrc",
    ".pypirc",
    ".netrc",
    ".htpasswd",
    "credentials*",
)

# Inner name segments that only annotate the file ("app.min.js", "foo.test.ts")
TAG_SEGMENTS: dict[str, str] = {
    "min": "minified",
    "test": "test",
    "spec": "spec",
    "d": "declaration",
}

# Sampling priority when a directory lists more entries than allowed
CATEGORY_PRIORITY: tuple[str, ...] = (
    "code",
    "config",
    "text",
    "markup",
    "data",
    "notebook",
    "image",
    "document",
    "unknown",
)

UNKNOWN_MIME = "text/plain"
