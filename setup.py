from setuptools import setup, find_packages

setup(
    name="magento-dev-mcp",
    version="1.0.0",
    description="Magento 2 development tools for AI agents over the Model Context Protocol",
    packages=find_packages(include=["magento_dev_mcp", "magento_dev_mcp.*"]),
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0.0",
        "pyyaml>=6.0",
        "tqdm>=4.65.0",
        "tree-sitter>=0.22.0",
        "tree-sitter-php>=0.23.0",
        "mcp>=1.2.0,<2",
        "pydantic>=2.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=22.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "magento-dev-mcp=magento_dev_mcp.cli:main",
        ],
    },
)
