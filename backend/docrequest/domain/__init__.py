"""Domain layer - errors, enums and models"""
