"""
NetTools - Reconcile NuGet package versions across a .NET solution.

A CLI tool that:
1. Discovers the projects referenced by a solution file
2. Scans their PackageReference entries
3. Standardizes divergent versions to the highest one found
4. Removes a package or applies upstream updates from NuGet

Usage:
    nettools standardize [SOLUTION]     # Align divergent package versions
    nettools remove PACKAGE [SOLUTION]  # Remove a package from projects
    nettools update [SOLUTION]          # Check NuGet and apply updates
"""

__version__ = "0.1.0"
__author__ = "NetTools"
