from setuptools import setup, find_packages

setup(
    name="quotex",
    version="1.0.0",
    description="Supplier quote extraction and catalog reconciliation",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "quotex": ["prompts/*.yaml", "config/*.yaml"],
    },
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        'pdfminer.six',
        'pyyaml',
        'sqlalchemy>=2.0',
        'pydantic>=2.0',
        'jinja2',
        'anthropic>=0.34.0',
        'click',
        'pandas',
        'openpyxl',
        'xlrd',
        'Pillow',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
        ],
    },
    entry_points={
        'console_scripts': [
            'quotex=quotex.cli:cli',
        ],
    },
)
