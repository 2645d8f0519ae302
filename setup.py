from setuptools import setup, find_packages

setup(
    name="triage-scheduler",
    version="0.1.0",
    description="Priority admission scheduler for beds and ventilators with a treatment worker pool",
    author="adamfilli",
    packages=find_packages(include=["triagescheduler", "triagescheduler.*"]),
    install_requires=[
        "pandas",
    ],
    extras_require={
        "examples": ["matplotlib"],
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
