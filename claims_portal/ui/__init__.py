# UI module - Streamlit pages of the claims portal
