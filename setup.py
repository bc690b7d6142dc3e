# ================================================================================================
# setup.py - Package Setup
# ================================================================================================

from setuptools import setup, find_packages

setup(
    name="camerashare-core",
    version="1.0.0",
    description="Camera sharing core: owner-controlled access, step-up approval and AI frame analysis",
    author="CameraShare Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "opencv-python>=4.8.1.78",
        "numpy>=1.24.3",
        "httpx>=0.25.2",
        "prometheus-client>=0.19.0",
        "structlog>=23.2.0",
        "python-dotenv>=1.0.0"
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "black>=23.7.0",
            "flake8>=6.0.0",
            "mypy>=1.5.0"
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12"
    ]
)
