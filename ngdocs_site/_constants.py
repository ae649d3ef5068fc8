"""Common literal values used across ngdocs_site.

These constants keep filenames and manifest keys centralized so templates,
builders, and tests can import the same values without drifting. Intended for
internal use within the ngdocs_site package.

Examples
--------
>>> from ngdocs_site import _constants
>>> _constants.PARTIAL_PATH_TEMPLATE.format(section="api", id="a")
'partials/api/a.html'
>>> _constants.MANIFEST_GLOBAL
'NG_DOCS'
"""

MANIFEST_GLOBAL = "NG_DOCS"
MANIFEST_PATH = "js/docs-setup.js"
RESERVED_KEY_PREFIX = "__"

PARTIALS_DIR = "partials"
PARTIAL_PATH_TEMPLATE = "partials/{section}/{id}.html"
INDEX_FILENAME = "index.html"

SCRIPTS_FOLDER = "site-scripts"
STYLES_FOLDER = "site-styles"
CSS_FOLDER = "css"

DEFAULT_SECTION = "api"
DEFAULT_SECTION_TITLE = "API Documentation"
ALL_TARGET = "all"

TODO_SECTION = "todo"
TODO_FILE_SECTION = "file"
TODO_PAGE_PATH = "partials/todo/index.html"
TODO_PAGE_METADATA: dict[str, str] = {
    "section": TODO_SECTION,
    "id": "index",
    "shortName": "TODO",
    "type": "overview",
    "moduleName": "TODO",
    "sourceFile": "docs/content/todo/",
    "shortDescription": "To Dos",
    "keywords": "overview todo todos",
}
