"""Command line interface for force-deploy"""
