"""Order persistence: the repository contract and its Django ORM implementation."""
