from setuptools import setup, find_packages

version_file_path = "buildHMM/_version.py"
with open(version_file_path, "rt") as version_file:
    version = version_file.readlines()[0].split("=")[1].strip(' "\n')

setup(
    name="buildHMM",
    version=version,
    description="buildHMM: Construction and calibration of profile HMMs "
                "from multiple sequence alignments",
    packages=find_packages(
        where=".",
        include=["buildHMM", "buildHMM.*"]
    ),
    python_requires=">=3.11",
    install_requires=["numpy",
                      "scipy",
                      "pydantic>=2",
                      "biopython>=1.80"],
    extras_require={"test": ["pytest"]},
    license="MIT",
    entry_points={
        "console_scripts": [
            "buildHMM = buildHMM.run.console:run_main", ] }
)
