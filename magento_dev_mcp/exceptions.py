"""Exception hierarchy shared by the analysis engine, the CLI bridge and the MCP server."""


class MagentoDevError(Exception):
    """Base class for every error raised by magento-dev-mcp."""
    pass


class ProjectBootstrapError(MagentoDevError):
    """The project root is not a usable Magento 2 installation."""
    pass


class AnalysisError(MagentoDevError):
    """A plugin analysis request cannot be completed."""
    pass


class TypeNotFoundError(MagentoDevError):
    """A PHP class, interface or trait could not be located or parsed."""

    def __init__(self, type_name: str, reason: str = ""):
        self.type_name = type_name
        message = f'Class "{type_name}" does not exist'
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class MagerunError(MagentoDevError):
    """Running the magerun2 command line tool failed."""
    pass


class MagerunNotFoundError(MagerunError):
    """The magerun2 binary is not installed or not on PATH."""

    def __init__(self, binary: str = "magerun2"):
        super().__init__(
            f"Error: {binary} command not found. Please ensure n98-magerun2 is "
            f"installed and available in your PATH.\n\n"
            f"Installation instructions: https://github.com/netz98/n98-magerun2"
        )


class NotMagentoInstallationError(MagerunError):
    """magerun2 refused to run because the directory is not a Magento root."""

    def __init__(self):
        super().__init__(
            "Error: Current directory does not appear to be a Magento 2 installation. "
            "Please run this command from your Magento 2 root directory."
        )


class MagerunCommandError(MagerunError):
    """magerun2 exited with an error or timed out."""
    pass


class MagerunOutputError(MagerunError):
    """magerun2 output could not be decoded as JSON."""

    def __init__(self, detail: str, raw_output: str):
        self.raw_output = raw_output
        super().__init__(
            f"Error parsing magerun2 JSON output: {detail}\n\nRaw output:\n{raw_output}"
        )
