from setuptools import find_packages, setup

setup(
    name="kmeans-validity",
    version="0.1.0",
    description="K-means clustering with internal and external cluster validity indices",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["run_kmeans", "web_app"],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.22",
        "pydantic>=2",
        "fastapi",
    ],
    extras_require={
        "test": ["pytest", "httpx"],
    },
    entry_points={
        "console_scripts": ["run-kmeans=run_kmeans:main"],
    },
)
