"""
Bearer-token identity for resource routes.
"""
