"""holdersmooth utilities"""
