"""Subscription billing server backed by Stripe"""
