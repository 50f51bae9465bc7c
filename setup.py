from setuptools import setup, find_packages

# Read requirements from requirements.txt
def read_requirements(path="requirements.txt"):
    with open(path, "r") as f:
        return [line.strip() for line in f if line.strip() and not line.startswith("#")]

# Test tooling:
#     pip install .[test]
install_requires = read_requirements()
tests_require = read_requirements("requirements-test.txt")

setup(
    name="HolderSmooth",
    version="0.1.0",
    description="Adaptive smoothing of noisy curves driven by their local Hölder regularity",
    packages=find_packages(include=["holdersmooth", "holdersmooth.*"]),
    install_requires=install_requires,
    extras_require={"test": tests_require},
    python_requires=">=3.11",
    license="MIT",
    classifiers=[
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
    ],
)
