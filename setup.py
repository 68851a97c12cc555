from setuptools import setup

setup(
    name="dde-session-helpers",
    version="1.0",
    py_modules=["main", "errors", "fileutils", "i18n", "user_data", "udisks", "system_info", "server"],
    python_requires=">=3.8",
    install_requires=[
        "rich",
    ],
    extras_require={
        "dbus": ["dbus-python", "PyGObject"],
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "dde-session-helpers=main:main",
        ],
    },
)
