#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List, Optional

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tradevet.config.loader import ConfigLoader, config_from_dict
from tradevet.config.validation import ConfigValidator, ValidationError
from tradevet.errors import ConfigurationError


def validate_asset_config(loader: ConfigLoader, asset: Optional[str],
                          overrides: Optional[dict] = None) -> List[str]:
    """Validate the effective configuration for an asset."""
    config = loader.merge_config(asset, overrides)
    errors: List[ValidationError] = ConfigValidator.validate_config(config)
    if errors:
        return [f"{error.field}: {error.message} (value: {error.value})" for error in errors]

    try:
        config_from_dict(config)
    except ConfigurationError as e:
        return [str(e)]
    return []


def main():
    """Main validation function."""
    print("🔍 Validating TradeVet configuration...")

    loader = ConfigLoader.create()

    # Assets to validate; None is the base configuration
    test_assets = [None, "BTC", "ETH", "SOL", "DOGE"]

    all_valid = True

    for asset in test_assets:
        label = asset or "base configuration"
        print(f"\n📊 Validating {label}...")

        problems = validate_asset_config(loader, asset)
        if problems:
            print(f"❌ Found {len(problems)} validation errors:")
            for problem in problems:
                print(f"  • {problem}")
            all_valid = False
        else:
            max_leverage = config_from_dict(loader.merge_config(asset)).max_leverage_for(asset or "")
            print(f"✅ {label} configuration is valid (max leverage {max_leverage:g}x)")

    print("\n📋 Testing per-call overrides...")
    test_overrides = {
        "trading_mode": "manual_review",
        "scoring": {
            "allow_signal_flip": True,
        },
    }

    problems = validate_asset_config(loader, "BTC", test_overrides)
    if problems:
        print("❌ Override validation failed:")
        for problem in problems:
            print(f"  • {problem}")
        all_valid = False
    else:
        print("✅ Override validation passed")

    if all_valid:
        print("\n🎉 All configuration validation passed!")
        sys.exit(0)
    else:
        print("\n❌ Configuration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
