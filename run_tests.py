#!/usr/bin/env python3
"""
Test runner script for the latest tag resolver.
Wraps pytest with the suite selection and reporting switches used in CI.
"""
import argparse
import subprocess
import sys

SUITES = {
    "unit": ["tests/unit/"],
    "component": ["tests/component/"],
    "all": ["tests/"],
}


def run_command(cmd, description):
    """Run a command, streaming its output, and report success."""
    print(f"\n{'='*60}")
    print(f"Running: {description}")
    print(f"Command: {' '.join(cmd)}")
    print(f"{'='*60}")

    result = subprocess.run(cmd)
    if result.returncode != 0:
        print(f"Error running {description}: return code {result.returncode}")
        return False
    return True


def build_command(args):
    cmd = [sys.executable, "-m", "pytest", *SUITES[args.type]]

    if args.verbose:
        cmd.append("-v")

    if args.coverage:
        cmd.extend(["--cov=latest_tag", "--cov-report=term-missing"])
        if args.html_report:
            cmd.append("--cov-report=html:htmlcov")

    if args.xml_report:
        cmd.append("--junitxml=test-results.xml")

    if args.type != "all":
        cmd.extend(["-m", args.type])
    return cmd


def main():
    """Main test runner function."""
    parser = argparse.ArgumentParser(description="Run tests for the latest tag resolver")
    parser.add_argument("--type", choices=sorted(SUITES), default="all", help="Type of tests to run")
    parser.add_argument("--coverage", action="store_true", help="Run with coverage reporting")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--html-report", action="store_true", help="Generate HTML coverage report")
    parser.add_argument("--xml-report", action="store_true", help="Generate XML test report")
    args = parser.parse_args()

    success = run_command(build_command(args), f"{args.type.title()} tests")

    if success:
        print(f"\n✅ {args.type.title()} tests passed successfully!")
        if args.coverage and args.html_report:
            print("\n📊 HTML coverage report generated in htmlcov/index.html")
        if args.xml_report:
            print("\n📋 XML test report generated in test-results.xml")
    else:
        print(f"\n❌ {args.type.title()} tests failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
