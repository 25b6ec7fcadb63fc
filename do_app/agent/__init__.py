"""
Genie agent client side.

Turns the structured actions returned with a Genie reply into typed
payloads the app can present.
"""
