from setuptools import setup, find_packages

setup(
    name="i18n-translator",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "aiohttp>=3.8.0",
        "aiolimiter>=1.1.0",
        "tenacity>=8.2.0",
        "google-cloud-translate>=3.21.0",
        "deepl>=1.22.0",
        "google-generativeai>=0.8.0",
    ],
    extras_require={
        'dev': [
            'pytest>=6.0',
            'black>=21.0',
            'isort>=5.0',
            'mypy>=0.900',
        ],
    },
    entry_points={
        'console_scripts': [
            'i18n-translator=i18n_translator.cli.main:main',
        ],
    },
    python_requires='>=3.9',
)
