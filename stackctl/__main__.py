"""Run as: python -m stackctl"""

from stackctl.dispatcher import main

if __name__ == "__main__":
    main()
