"""
Streamlit developer view.
"""
