"""asset-mirror: mirror a GitHub project's releases and assets to local disk."""
