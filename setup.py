from setuptools import find_packages, setup

setup(
    name="bitbucket-build-status",
    version="0.1.0",
    packages=find_packages(
        include=[
            "bbs_common",
            "bbs_common.*",
            "bbs_persistence",
            "bbs_persistence.*",
            "bbs_notifier",
            "bbs_notifier.*",
            "bbs_client",
            "bbs_client.*",
            "bbs_admin",
            "bbs_admin.*",
        ]
    ),
    install_requires=[
        "requests>=2.31.0",
        "aiosqlite>=0.19.0",
        "click>=8.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-xdist>=3.3.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "bbs-notify=bbs_client.cli:main",
            "bbs-admin=bbs_admin.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
