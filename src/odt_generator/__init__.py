"""!
@brief ODT Generator package root.
@details Modules under this namespace detect installed Microsoft Office,
resolve its languages and products, and emit an Office Deployment Tool
configuration document that reproduces the same footprint.
"""

__all__ = [
    "main",
    "generator",
    "detect",
    "c2r_config",
    "msi_config",
    "languages",
    "locale_resolver",
    "synthesizer",
    "odt_document",
    "registry_tools",
    "models",
    "ordered_set",
    "constants",
    "errors",
    "uninstall",
    "confirm",
    "command_runner",
    "logging_ext",
    "version",
]
