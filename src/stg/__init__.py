"""stg - schema templates for property graphs and their validation."""

from stg.graph.entities import new_duplet, new_edge, new_node, new_triplet
from stg.graph.graph import new_graph
from stg.parser.template_parser import TemplateParser, parse_template
from stg.template.template import Template
from stg.validation import ValidationResult, validate

__version__ = "0.1.0"
__all__ = [
    "parse_template",
    "TemplateParser",
    "Template",
    "new_node",
    "new_edge",
    "new_triplet",
    "new_duplet",
    "new_graph",
    "validate",
    "ValidationResult",
    "__version__",
]
