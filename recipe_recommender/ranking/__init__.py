"""Hard-constraint candidate selection and final ordering."""
